"""
PS_Libs - Print Studio Library Modules

This package contains core functionality for the Print Studio project,
organized into specialized sub-packages:

- ColorGradeLib: Color cube (.cube) parsing and LUT application
- LayoutLib: Template/frame models and cover-fit geometry
- CompositeLib: Frame compositing pipeline and reference layer renderer
- StudioStoreLib: Session configuration persistence
"""

__version__ = "0.1.0"
