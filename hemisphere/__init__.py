"""
Hemisphere memory core: FSRS scheduling, review queues and zombie item detection
"""
__version__ = "1.0.0"
