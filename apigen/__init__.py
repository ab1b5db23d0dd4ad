"""apigen -- generates backend project skeletons from an entity schema."""

__version__ = "0.1.0"
