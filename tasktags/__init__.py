"""Task tracker with free-form, auto-provisioned tags."""

__version__ = "1.0.0"
