"""
Centralized defaults for parsing and comparison.

These are infrastructure settings shared by every validation run. Environment
variables (see settings.py) and per-rule-set config maps override the flags.
"""


class ComparisonDefaults:
    """
    Centralized default values.

    Flag defaults can be overridden at runtime:
    - EDI_VALIDATOR_CASE_SENSITIVE=false edi-validate ...
    - edi-validate --config ignore_trailing_whitespace=true ...
    """

    # EDIFACT service characters (UNA defaults)
    EDIFACT_SEGMENT_DELIMITER = "'"
    EDIFACT_ELEMENT_DELIMITER = "+"
    EDIFACT_COMPONENT_DELIMITER = ":"
    EDIFACT_RELEASE_CHARACTER = "?"

    # ANSI X12 separators
    X12_SEGMENT_DELIMITER = "~"
    X12_ELEMENT_DELIMITER = "*"
    X12_COMPONENT_DELIMITERS = (":", ">")
    X12_ISA_LENGTH = 106

    # Comparison flags
    CASE_SENSITIVE = True
    IGNORE_TRAILING_WHITESPACE = False
    DETECT_UNEXPECTED_SEGMENTS = False
    VALIDATE_SEGMENT_ORDER = False
    FAIL_ON_FIRST_ERROR = False

    # Logging
    LOG_LEVEL = "WARNING"

    @classmethod
    def to_dict(cls) -> dict:
        """
        Export all defaults as a dictionary.

        Returns:
            Dictionary of all ComparisonDefaults class attributes.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if not key.startswith('_') and key.isupper()
        }

    @classmethod
    def log_summary(cls, logger=None):
        """
        Log a summary of all defaults.

        Args:
            logger: Optional logger instance. If None, prints to stdout.
        """
        config_dict = cls.to_dict()
        summary = "\n".join([f"  {key}: {value}" for key, value in sorted(config_dict.items())])
        message = f"Comparison Defaults:\n{summary}"

        if logger:
            logger.info(message)
        else:
            print(message)
