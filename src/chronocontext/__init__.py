"""chronocontext: contextualized date/time extraction for free text."""

__version__ = "0.1.0"
