"""
Test suite for the CNJ analyzer and the district reference data
"""

import unittest
import os
import json
import shutil
import tempfile

from cnj_analyzer import (
    AnalysisCNJ, BatchFailure, CnjAnalyzer, analyze_cnj, analyze_cnj_batch,
    get_batch_statistics, is_valid_cnj_complete, write_cnj
)
from cnj_classifiers import CourtType, SourceUnitType
from cnj_reference_data import (
    DistrictIndexBuilder, DistrictInfo, get_district_index, get_district_info,
    get_districts_by_uf, has_district, load_district_index, set_district_index
)
from cnj_validator_base import CNJErrorType, CNJValidationError, decompose_cnj

VALID_CNJS = [
    '0001327-64.2018.8.26.0158',
    '0001328-12.2019.8.26.0159',
    '1234567-85.2023.4.01.0000',
    '0000456-81.2022.5.02.0200',
    '0000789-14.2019.6.21.0010',
]


class TestAnalyzer(unittest.TestCase):
    """Test single number analysis"""

    def setUp(self):
        self.analyzer = CnjAnalyzer()

    def test_state_court_analysis(self):
        result = self.analyzer.analyze('0001327-64.2018.8.26.0158')

        self.assertTrue(result.valid_cnj)
        self.assertEqual(result.received_cnj, '0001327-64.2018.8.26.0158')
        self.assertEqual(result.segment_name, 'Justiça dos Estados e do Distrito Federal e Territórios')
        self.assertEqual(result.segment_short, 'TJ')
        self.assertEqual(result.source_unit_type, SourceUnitType.CIVIL_UNIT)
        self.assertEqual(result.source_unit_number, '0158')
        self.assertEqual(result.court_type, CourtType.ESTATE)
        self.assertEqual(result.court_number, '26')
        self.assertEqual(result.detailed.tj, 'TJSP')

        print("[PASS] State court analysis test passed")

    def test_federal_original_competence(self):
        result = self.analyzer.analyze('1234567-85.2023.4.01.0000')

        self.assertTrue(result.valid_cnj)
        self.assertEqual(result.source_unit_type, SourceUnitType.COURT_UNIT_SINGLE)
        self.assertEqual(result.court_type, CourtType.REGION)
        self.assertEqual(result.court_number, '1')
        self.assertEqual(result.detailed.tj, 'TRF1')

    def test_appeal_panel(self):
        result = self.analyzer.analyze('9999999-78.2024.8.26.9999')

        self.assertTrue(result.valid_cnj)
        self.assertEqual(result.source_unit_type, SourceUnitType.COURT_UNIT)

    def test_state_military(self):
        result = self.analyzer.analyze('0000001-39.2015.9.13.0001')

        self.assertEqual(result.court_type, CourtType.MARTIAL_COURT)
        self.assertEqual(result.court_number, 'Minas Gerais - MG')
        self.assertEqual(result.source_unit_type, SourceUnitType.MILITARY_UNIT)

    def test_superior_court(self):
        result = self.analyzer.analyze('0000001-95.2020.1.00.0000')

        self.assertTrue(result.valid_cnj)
        self.assertEqual(result.court_type, CourtType.ORIGINAL_LAWSUIT)
        self.assertEqual(result.court_number, 'Supremo Tribunal Federal (STF)')

    def test_compact_equals_masked(self):
        masked = self.analyzer.analyze('0001327-64.2018.8.26.0158')
        compact = self.analyzer.analyze('00013276420188260158')

        self.assertEqual(masked.detailed, compact.detailed)
        self.assertEqual(masked.court_type, compact.court_type)
        self.assertNotEqual(masked.received_cnj, compact.received_cnj)

    def test_wrong_digit_is_not_an_error(self):
        result = self.analyzer.analyze('0001327-65.2018.8.26.0158')

        self.assertIsInstance(result, AnalysisCNJ)
        self.assertFalse(result.valid_cnj)
        self.assertEqual(result.detailed.verifying_digit, '65')

    def test_invalid_segment(self):
        with self.assertRaises(CNJValidationError) as ctx:
            self.analyzer.analyze('0000001-00.2020.0.01.0001')
        self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_SEGMENT)
        self.assertEqual(ctx.exception.details['cnj'], '0000001-00.2020.0.01.0001')

    def test_invalid_court(self):
        for cnj in ['0000001-36.2020.9.14.0001', '0000001-64.2020.6.90.0100',
                    '0000001-13.2020.8.00.0000', '0000001-69.2020.4.06.0100',
                    '0000001-03.2020.3.01.0000', '0000001-30.2020.8.28.0001']:
            with self.assertRaises(CNJValidationError) as ctx:
                self.analyzer.analyze(cnj)
            self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_COURT, cnj)

    def test_malformed(self):
        with self.assertRaises(CNJValidationError) as ctx:
            self.analyzer.analyze('invalid-cnj')
        self.assertEqual(ctx.exception.error_type, CNJErrorType.INVALID_LENGTH)

    def test_is_valid_complete(self):
        self.assertTrue(self.analyzer.is_valid_complete('0001327-64.2018.8.26.0158'))
        self.assertFalse(self.analyzer.is_valid_complete('0001327-65.2018.8.26.0158'))
        self.assertFalse(self.analyzer.is_valid_complete('0000001-36.2020.9.14.0001'))
        self.assertFalse(self.analyzer.is_valid_complete('invalid-cnj'))

    def test_function_api(self):
        self.assertTrue(analyze_cnj(VALID_CNJS[0]).valid_cnj)
        self.assertTrue(is_valid_cnj_complete(VALID_CNJS[2]))

    def test_to_dict(self):
        data = self.analyzer.analyze(VALID_CNJS[0]).to_dict()

        self.assertEqual(data['segment_short'], 'TJ')
        self.assertEqual(data['detailed']['uf'], 'SP')
        json.dumps(data)


class TestBatchAnalysis(unittest.TestCase):
    """Test batch analysis with failure isolation"""

    def setUp(self):
        self.analyzer = CnjAnalyzer()
        self.items = VALID_CNJS + ['invalid-cnj', '0001327-65.2018.8.26.0158']

    def test_failures_do_not_abort(self):
        results = self.analyzer.analyze_batch(self.items)

        self.assertEqual(len(results), len(self.items))
        failure = results[5]
        self.assertIsInstance(failure, BatchFailure)
        self.assertEqual(failure.cnj, 'invalid-cnj')
        self.assertEqual(failure.index, 6)
        self.assertTrue(failure.error)

    def test_parallel_keeps_order(self):
        sequential = self.analyzer.analyze_batch(self.items)
        parallel = self.analyzer.analyze_batch(self.items, max_workers=4)

        self.assertEqual(sequential, parallel)
        self.assertEqual([getattr(r, 'received_cnj', getattr(r, 'cnj', None)) for r in parallel],
                         self.items)

        print("[PASS] Parallel batch order test passed")

    def test_statistics(self):
        stats = get_batch_statistics(analyze_cnj_batch(self.items))

        self.assertEqual(stats['total'], 7)
        self.assertEqual(stats['errors'], 1)
        self.assertEqual(stats['successful'], 6)
        self.assertEqual(stats['valid'], 5)
        self.assertEqual(stats['invalid'], 1)
        self.assertAlmostEqual(stats['success_rate'], 6 / 7 * 100)

    def test_empty_statistics(self):
        stats = get_batch_statistics([])
        self.assertEqual(stats['total'], 0)
        self.assertEqual(stats['success_rate'], 0)


class TestWriteCnj(unittest.TestCase):

    def test_state_court_sentence(self):
        analysis = analyze_cnj('0001327-64.2018.8.26.0158')

        self.assertEqual(
            write_cnj(analysis),
            "Processo número: 0001327, protocolado no foro de São Paulo, no ano 2018 | "
            "unidade federativa: SP | "
            "Justiça dos Estados e do Distrito Federal e Territórios (TJ)"
        )

    def test_feminine_preposition(self):
        sentence = write_cnj(analyze_cnj('0000789-14.2019.6.21.0010'))
        self.assertIn("protocolado na zona eleitoral de", sentence)

    def test_falls_back_to_codes(self):
        sentence = write_cnj(analyze_cnj('9999999-78.2024.8.26.9999'))
        self.assertIn("de 9999, no ano 2024", sentence)
        self.assertIn("unidade federativa: 26", sentence)


class TestDistrictReference(unittest.TestCase):
    """Test district index loading and the builder"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        set_district_index(load_district_index())
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_bundled_dataset(self):
        index = get_district_index()

        self.assertGreater(len(index), 50)
        self.assertIn('8.26.0158', index)
        self.assertEqual(get_district_info('8.26.0158').uf, 'SP')
        self.assertTrue(has_district('4.01.0001'))
        self.assertFalse(has_district('8.26.9999'))
        self.assertTrue(all(info.uf == 'SP' for info in get_districts_by_uf('sp')))

        stats = index.get_statistics()
        self.assertEqual(stats['total_districts'], len(index))
        self.assertIn('SP', stats['states'])

    def test_index_is_read_only(self):
        with self.assertRaises(TypeError):
            get_district_index().districts['1.00.0000'] = DistrictInfo('X', 'DF', 'X')

    def test_builder(self):
        builder = DistrictIndexBuilder()
        builder.add('8.26.0158', DistrictInfo('Foro Teste', 'SP', 'Teste'))
        index = builder.build()

        self.assertEqual(len(index), 1)
        self.assertEqual(index.get('8.26.0158').source_unit, 'Foro Teste')
        self.assertEqual(len(index.get_by_segment('8')), 1)

        with self.assertRaises(RuntimeError):
            builder.add('8.26.0100', DistrictInfo('Outro', 'SP', ''))

    def test_builder_rejects_bad_keys(self):
        with self.assertRaises(ValueError):
            DistrictIndexBuilder().add('8-26-0158', DistrictInfo('Foro', 'SP', ''))

    def test_district_record_validation(self):
        with self.assertRaises(ValueError):
            DistrictInfo('', 'SP', '')
        with self.assertRaises(ValueError):
            DistrictInfo('Foro', 'S1', '')

    def test_custom_index_drives_decomposition(self):
        path = os.path.join(self.temp_dir, "districts.json")
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({"districts": {
                "8.26.9999": {"source_unit": "Turma Teste", "uf": "SP", "district": "Teste"}
            }}, f)

        set_district_index(load_district_index(path))

        self.assertEqual(decompose_cnj('9999999-78.2024.8.26.9999').district, 'Turma Teste')
        self.assertEqual(decompose_cnj('0001327-64.2018.8.26.0158').district, '')

    def test_load_with_extra_records(self):
        index = load_district_index(extra={'8.26.9999': DistrictInfo('Extra', 'SP', '')})
        self.assertEqual(index.get('8.26.9999').source_unit, 'Extra')
        self.assertIn('8.26.0158', index)

    def test_load_errors(self):
        with self.assertRaises(FileNotFoundError):
            load_district_index(os.path.join(self.temp_dir, "missing.json"))

        broken = os.path.join(self.temp_dir, "broken.json")
        with open(broken, 'w') as f:
            f.write("{not json")
        with self.assertRaises(ValueError):
            load_district_index(broken)


if __name__ == "__main__":
    unittest.main(verbosity=2)
