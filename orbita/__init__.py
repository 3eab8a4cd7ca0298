"""
orbita: reconciliador declarativo de grafos de recursos de nube.
"""

__version__ = "1.0.0"
