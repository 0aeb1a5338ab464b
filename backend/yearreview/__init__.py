"""
Year in review: yearly activity statistics across GitHub, Google, Slack
and Linear.
"""

__version__ = "0.1.0"
