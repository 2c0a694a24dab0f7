"""
ThermoBugs Simulation

A deterministic, headless artificial-life kernel: a flock of boids roams a
terrain, follows a diffusing thermal field and its own pheromone trail, and
is reshuffled every few seconds by a genetic algorithm.

Architecture: the simulation is the source of truth. Rendering, audio and
UI are consumers of the render sink and never write back.
"""

__version__ = "0.1.0"
