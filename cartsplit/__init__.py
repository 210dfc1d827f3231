"""Split a grocery order between people and post the shares to Splitwise."""

__version__ = "0.1.0"
