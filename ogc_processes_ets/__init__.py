"""
Executable test suite for OGC API - Processes - Part 2: Deploy, Replace, Undeploy.

The suite runs on pytest. Enable it with ``-p ogc_processes_ets.plugin`` (or
use ``run_tests.py``) and pass the implementation under test with ``--iut``.
"""

__version__ = "1.0.0"
