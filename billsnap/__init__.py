"""
BillSnap - Receipt and bill image to structured expense data.

Example:
    >>> from billsnap.adapters.gemini import GeminiClient, GeminiConfig
    >>> from billsnap.domains.extraction import ExtractionGateway
    >>> gateway = ExtractionGateway(GeminiClient(GeminiConfig(api_key="...")))
    >>> result = await gateway.extract(image_data_uri)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
