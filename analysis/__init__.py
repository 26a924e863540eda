"""
Analysis package for the Multi-Core Scheduler Simulator.
Contains the event log, metrics and policy comparison.
"""
