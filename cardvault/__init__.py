"""Sport card collection importer.

Excel bulk import (template / parse / auto-match / validate / import) and
card image search for the card catalogue database.
"""

__version__ = "0.3.0"
