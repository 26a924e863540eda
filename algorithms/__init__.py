"""
Algorithms package for the Multi-Core Scheduler Simulator.
Contains policy selection, tick phases, deadlock detection and recovery.
"""
