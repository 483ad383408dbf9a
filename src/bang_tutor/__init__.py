"""
Bang-Tutor - agentic language tutor server.
"""

__version__ = "0.1.0"
