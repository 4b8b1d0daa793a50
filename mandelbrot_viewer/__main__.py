"""
Allow running the package directly: python -m mandelbrot_viewer
"""
import sys

from .cli import main

sys.exit(main())
