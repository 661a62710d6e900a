"""
Test suite for CNJ decomposition and check digit validation
"""

import unittest

from cnj_validator_base import (
    CNJErrorType, CNJValidationError, calculate_verifying_digit, decompose_cnj,
    detect_cnj_format, extract_court, extract_segment, extract_year, format_cnj,
    is_from_segment, is_from_year, is_valid_cnj, normalize_cnj, validate_cnj,
    validate_cnj_components, validate_cnj_format
)

VALID_CNJ = '0001327-64.2018.8.26.0158'
VALID_CNJ_COMPACT = '00013276420188260158'
INVALID_DIGIT_CNJ = '0001327-65.2018.8.26.0158'

FIELDS = ('lawsuit_number', 'verifying_digit', 'protocol_year', 'segment', 'court', 'source_unit')


class TestDecomposition(unittest.TestCase):
    """Test splitting CNJ numbers into fields"""

    def test_masked_decomposition(self):
        result = decompose_cnj(VALID_CNJ)

        self.assertEqual(result.lawsuit_number, '0001327')
        self.assertEqual(result.verifying_digit, '64')
        self.assertEqual(result.protocol_year, '2018')
        self.assertEqual(result.segment, '8')
        self.assertEqual(result.court, '26')
        self.assertEqual(result.source_unit, '0158')
        self.assertEqual(result.arg_number, '00013272018826015800')
        self.assertEqual(result.lawsuit_cnj_format, VALID_CNJ)

    def test_compact_matches_masked(self):
        """Compact form decomposes identically to its masked equivalent"""
        self.assertEqual(decompose_cnj(VALID_CNJ_COMPACT), decompose_cnj(VALID_CNJ))

    def test_district_enrichment(self):
        result = decompose_cnj(VALID_CNJ)

        self.assertEqual(result.district, 'São Paulo')
        self.assertEqual(result.uf, 'SP')
        self.assertEqual(result.tj, 'TJSP')

    def test_district_miss_is_not_an_error(self):
        result = decompose_cnj('9999999-78.2024.8.26.9999')

        self.assertEqual(result.district, '')
        self.assertEqual(result.uf, '')
        self.assertEqual(result.tj, 'TJ')

    def test_tribunal_code_uses_court_number(self):
        """Segments 1, 2, 3, 4 and 7 strip leading zeros from the court number"""
        self.assertEqual(decompose_cnj('1234567-85.2023.4.01.0000').tj, 'TRF1')
        self.assertEqual(decompose_cnj('0001000-27.2020.7.04.0100').tj, 'STM4')
        self.assertEqual(decompose_cnj('0000001-95.2020.1.00.0000').tj, 'STF0')

    def test_tribunal_code_uses_state(self):
        self.assertEqual(decompose_cnj('0000456-81.2022.5.02.0200').tj, 'TRTSP')
        self.assertEqual(decompose_cnj('0000789-14.2019.6.21.0010').tj, 'TRERS')
        self.assertEqual(decompose_cnj('0000001-39.2015.9.13.0001').tj, 'TJMMG')

    def test_unknown_segment_has_empty_tribunal_code(self):
        result = decompose_cnj('0000001-00.2020.0.01.0001')
        self.assertEqual(result.segment, '0')
        self.assertEqual(result.tj, '')

    def test_arg_number_is_twenty_digits(self):
        for cnj in [VALID_CNJ, '1234567-85.2023.4.01.0000', '9999999-78.2024.8.26.9999']:
            result = decompose_cnj(cnj)
            self.assertEqual(len(result.arg_number), 20)
            self.assertTrue(result.arg_number.endswith('00'))
            stripped = ''.join(getattr(result, f) for f in FIELDS if f != 'verifying_digit')
            self.assertEqual(len(stripped), 18)

    def test_format_round_trip(self):
        """decompose(format(decompose(x))) keeps the six fields"""
        for compact in [VALID_CNJ_COMPACT, '12345678520234010000', '99999997820248269999']:
            first = decompose_cnj(compact)
            second = decompose_cnj(format_cnj(compact))
            for field_name in FIELDS:
                self.assertEqual(getattr(first, field_name), getattr(second, field_name))

    def test_invalid_length(self):
        for cnj in ['invalid-cnj', '', '123', '0001327-64.2018.8.26.01580', '000132764201882601581']:
            with self.assertRaises(CNJValidationError) as ctx:
                decompose_cnj(cnj)
            self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_LENGTH, cnj)

    def test_missing_hyphen_is_length_error(self):
        with self.assertRaises(CNJValidationError) as ctx:
            decompose_cnj('0001327.64.2018.8.26.0158')
        self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_LENGTH)

    def test_invalid_masked_format(self):
        for cnj in ['0001327-64-2018.8.26.0158', '0001327-64.2018.8.26-0158', '0001327-64.2018.8.260158']:
            with self.assertRaises(CNJValidationError) as ctx:
                decompose_cnj(cnj)
            self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_FORMAT, cnj)

    def test_field_content_is_checked(self):
        for cnj in ['ABCDEFG-64.2018.8.26.0158', '0001327-64.2018.8.26.158X', '000132764201882601AB']:
            with self.assertRaises(CNJValidationError) as ctx:
                decompose_cnj(cnj)
            self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_FORMAT, cnj)

    def test_error_message_names_received_value(self):
        with self.assertRaises(CNJValidationError) as ctx:
            decompose_cnj('0001327-64-2018.8.26.0158')
        self.assertIn('0001327-64-2018.8.26.0158', str(ctx.exception))
        self.assertIn('NNNNNNN-DD.AAAA.J.CT.OOOO', str(ctx.exception))

    def test_validate_components(self):
        validate_cnj_components('0001327', '64', '2018', '8', '26', '0158')

        with self.assertRaises(CNJValidationError) as ctx:
            validate_cnj_components('001327', '64', '2018', '8', '26', '0158')
        self.assertEqual(ctx.exception.code, 'INVALID_LAWSUIT_NUMBER')

        with self.assertRaises(CNJValidationError) as ctx:
            validate_cnj_components('0001327', '64', '18', '8', '26', '0158')
        self.assertEqual(ctx.exception.code, 'INVALID_PROTOCOL_YEAR')


class TestCheckDigit(unittest.TestCase):
    """Test mod 97 check digit calculation"""

    def test_known_digit(self):
        self.assertEqual(calculate_verifying_digit('00013272018826015800'), '64')
        self.assertEqual(calculate_verifying_digit('00013282019826015900'), '12')

    def test_operands_above_64_bits(self):
        """20-digit operands beyond 2**63 keep exact results"""
        self.assertGreater(int('12345672023401000000'), 2 ** 63)
        self.assertEqual(calculate_verifying_digit('12345672023401000000'), '85')
        self.assertEqual(calculate_verifying_digit('99999992024826999900'), '78')

    def test_zero_padding(self):
        self.assertEqual(calculate_verifying_digit('00000012020301000000'), '03')

    def test_deterministic(self):
        digits = {calculate_verifying_digit('00013272018826015800') for _ in range(5)}
        self.assertEqual(digits, {'64'})

    def test_calculation_error(self):
        for arg in ['', 'abc', '-123', '12 34', '1.5', None]:
            with self.assertRaises(CNJValidationError) as ctx:
                calculate_verifying_digit(arg)
            self.assertEqual(ctx.exception.error_type, CNJErrorType.CALCULATION_ERROR)


class TestValidation(unittest.TestCase):
    """Test the result-returning validation API"""

    def test_valid_number(self):
        result = validate_cnj(VALID_CNJ)

        self.assertTrue(result.is_valid)
        self.assertEqual(result.expected_digit, '64')
        self.assertEqual(result.received_digit, '64')
        self.assertIsNone(result.error)

    def test_wrong_digit(self):
        result = validate_cnj(INVALID_DIGIT_CNJ)

        self.assertFalse(result.is_valid)
        self.assertEqual(result.expected_digit, '64')
        self.assertEqual(result.received_digit, '65')
        self.assertEqual(result.error_code, 'INVALID_VERIFYING_DIGIT')
        self.assertIn('64', result.error)

    def test_malformed_never_raises(self):
        result = validate_cnj('invalid-cnj')

        self.assertFalse(result.is_valid)
        self.assertTrue(result.error)
        self.assertEqual(result.error_code, 'INVALID_LENGTH')
        self.assertIsNone(result.expected_digit)

    def test_to_dict(self):
        data = validate_cnj(VALID_CNJ).to_dict()
        self.assertEqual(data['is_valid'], True)
        self.assertEqual(data['expected_digit'], '64')

    def test_boolean_helpers(self):
        self.assertTrue(is_valid_cnj(VALID_CNJ))
        self.assertTrue(is_valid_cnj(VALID_CNJ_COMPACT))
        self.assertFalse(is_valid_cnj(INVALID_DIGIT_CNJ))
        self.assertTrue(validate_cnj_format(INVALID_DIGIT_CNJ))
        self.assertFalse(validate_cnj_format('invalid-cnj'))


class TestFormatHelpers(unittest.TestCase):
    """Test normalize/format/detect helpers and field extraction"""

    def test_normalize(self):
        self.assertEqual(normalize_cnj(VALID_CNJ), VALID_CNJ_COMPACT)

    def test_format(self):
        self.assertEqual(format_cnj(VALID_CNJ_COMPACT), VALID_CNJ)
        self.assertEqual(format_cnj(VALID_CNJ), VALID_CNJ)
        with self.assertRaises(CNJValidationError):
            format_cnj('123')

    def test_detect_format(self):
        self.assertEqual(detect_cnj_format(VALID_CNJ), 'formatted')
        self.assertEqual(detect_cnj_format(VALID_CNJ_COMPACT), 'unformatted')
        self.assertEqual(detect_cnj_format('123'), 'invalid')
        self.assertEqual(detect_cnj_format('0001327 64 2018 8 26 0158'), 'invalid')

    def test_extraction(self):
        self.assertEqual(extract_year(VALID_CNJ), '2018')
        self.assertEqual(extract_segment(VALID_CNJ), '8')
        self.assertEqual(extract_court(VALID_CNJ), '26')
        self.assertEqual(extract_year('invalid-cnj'), '')
        self.assertTrue(is_from_year(VALID_CNJ, '2018'))
        self.assertFalse(is_from_year(VALID_CNJ, '2019'))
        self.assertTrue(is_from_segment(VALID_CNJ_COMPACT, '8'))
        self.assertFalse(is_from_segment('invalid-cnj', '8'))


if __name__ == "__main__":
    unittest.main(verbosity=2)
