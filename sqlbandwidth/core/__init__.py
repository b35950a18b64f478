"""
Benchmark engine: milestone tracking, upload/download drivers, run orchestration.
"""
