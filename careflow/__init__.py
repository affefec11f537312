"""
CareFlow - multi-agent healthcare workflow orchestration.
"""

__version__ = "0.1.0"
