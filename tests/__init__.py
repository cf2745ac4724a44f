"""Test package for the Algebra Speed Test.

Core tests (generator, timer, leaderboard, session) run without pygame. The
UI tests use pygame's dummy video driver so no real window is opened. To run
them, execute ``pytest`` from the project root.
"""
