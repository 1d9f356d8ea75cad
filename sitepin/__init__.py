"""Mirror a web page with its assets and publish the bundle to IPFS."""

__version__ = "0.1.0"
