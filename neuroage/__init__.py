"""
NeuroAge: brain age and gender prediction from structural MRI.
"""

__version__ = "0.1.0"
