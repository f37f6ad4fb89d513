"""
Layout Internal Package - DO NOT IMPORT FROM HERE

This package contains INTERNAL implementation for the Layout model:
- container.py: Container element and Containers collection
- asset.py: Asset element owned by a container

FORBIDDEN: Do not import from models.layout._internal.* directly
CORRECT: Import from models.layout (the public API)

Example:
    from models.layout import Layout, Container, Asset
"""

# This package is internal - do not populate __all__
# External code must use models.layout
