"""CrewCommand crew scheduling and voice command backend"""

__version__ = "1.0.0"
