"""
Utilities for the Multi-Core Scheduler Simulator: logging and scenario loading.
"""
