"""
Punto de entrada: python -m orbita
"""

from orbita.cli.app import main

if __name__ == "__main__":
    main()
