from sql2frame.common.errors import (
    ConversionError,
    ErrorCode,
    ErrorSeverity,
    InterpolationError,
    MacroArgumentError,
    UnknownMacroError,
)


def test_error_envelope_uses_safe_message_for_conversion_failures():
    # Validates sanitized output because driver messages may leak data.
    # Arrange
    err = ConversionError("ssn", "TEXT", ValueError("bad value '123-45-6789'"), row=3)

    # Act
    envelope = err.to_envelope()

    # Assert
    assert envelope.error_code is ErrorCode.CONVERSION_FAILED
    assert "123-45-6789" not in envelope.safe_message
    assert envelope.details == {"column": "ssn", "type_name": "TEXT", "row": 3}
    assert envelope.severity is ErrorSeverity.ERROR


def test_macro_errors_keep_their_message():
    err = MacroArgumentError("timeGroup", "unsupported period 'week'")

    envelope = err.to_envelope()

    assert envelope.error_code is ErrorCode.MACRO_ARGUMENT
    assert envelope.safe_message == "macro '$__timeGroup': unsupported period 'week'"


def test_interpolation_errors_share_a_base():
    assert isinstance(UnknownMacroError("x"), InterpolationError)
    assert UnknownMacroError("x").details == {"macro": "x"}
