"""
Models package for the Multi-Core Scheduler Simulator.
Contains resources, processes, cores and the global system state.
"""
