"""
Extraction Domain - Receipt image to structured expense data.

This domain handles:
- The output schema and its validator
- Prompt policy and deterministic categorization rules
- The extraction gateway (Gemini) and local OCR extractor
- Classification of provider failures
"""

from .classifier import AUTH_REMEDIATION, classify, failure_for
from .contracts import Extractor
from .datauri import decode_data_uri, encode_data_uri, ensure_data_uri, is_data_uri
from .display import PURPOSE_DISPLAY, PurposeDisplay, purpose_label
from .gateway import ExtractionGateway, LocalOcrExtractor, ProgressCallback
from .models import (
    AMOUNT_SENTINEL,
    BILL_NO_SENTINEL,
    RESPONSE_SCHEMA,
    ExtractionFailure,
    ExtractionRequest,
    ExtractionResult,
    ExtractionSchema,
    ExtractionSuccess,
    Purpose,
    Remediation,
    validate_extraction,
)
from .policy import (
    build_system_prompt,
    build_user_prompt,
    classify_purpose,
    extract_amount,
    extract_bill_no,
    fields_from_text,
)
from .wire import result_from_body, result_to_body

__all__ = [
    # Contracts
    "Extractor",
    # Models
    "Purpose",
    "ExtractionSchema",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionSuccess",
    "ExtractionFailure",
    "Remediation",
    "RESPONSE_SCHEMA",
    "BILL_NO_SENTINEL",
    "AMOUNT_SENTINEL",
    "validate_extraction",
    # Data URIs
    "encode_data_uri",
    "decode_data_uri",
    "ensure_data_uri",
    "is_data_uri",
    # Policy
    "build_system_prompt",
    "build_user_prompt",
    "classify_purpose",
    "extract_amount",
    "extract_bill_no",
    "fields_from_text",
    # Classifier
    "classify",
    "failure_for",
    "AUTH_REMEDIATION",
    # Display
    "PURPOSE_DISPLAY",
    "PurposeDisplay",
    "purpose_label",
    # Implementations
    "ExtractionGateway",
    "LocalOcrExtractor",
    "ProgressCallback",
    # Wire format
    "result_to_body",
    "result_from_body",
]
