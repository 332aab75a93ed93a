"""Help My Barber - haircut previews generated from your own photo."""

__version__ = "0.1.0"
