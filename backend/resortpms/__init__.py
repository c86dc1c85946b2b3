"""
ResortPMS - 度假村预订生命周期与可用性引擎
"""

__version__ = "1.0.0"
