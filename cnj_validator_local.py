"""
CNJ Validator - Local Python Application
Batch CSV processing, file watching and command-line access for CNJ numbers
"""

import os
import re
import sys
import json
import time
import shutil
import logging
import argparse
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field, fields, asdict

# Third-party imports
import pandas as pd
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from cnj_analyzer import AnalysisCNJ, CnjAnalyzer, write_cnj
from cnj_reference_data import load_district_index, set_district_index
from cnj_validator_base import CNJValidationError, DecomposedCNJ

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SUPPORTED_SEPARATORS = (',', ';', '\t', '|')
OUTPUT_DELIMITER = ','
LINE_SPLIT_PATTERN = re.compile(r'\r\n|\r|\n')
MISSING_CNJ_MESSAGE = 'Linha vazia ou CNJ não encontrado'

CSV_HEADERS = [
    'CNJ_original',
    'CNJ_é_válido',
    'Segmento',
    'Segmento_short',
    'Tipo_Unidade_Judiciária',
    'Número_Unidade_Judiciária',
    'Nome_Unidade_Judiciária',
    'Tipo_Região',
    'Número_Região',
    'Nome_Região',
    'Número_Processo',
    'Dígito_Verificador',
    'Ano_Protocolo',
    'Poder_Judiciário',
    'Região',
    'Unidade_Judiciária',
]


# ==================== Configuration ====================
@dataclass
class Config:
    """Application configuration"""
    # Directories
    input_dir: str = "cnj-inbox"
    output_dir: str = "cnj-results"  # empty: write next to the input file
    processed_dir: str = "cnj-processed"

    # CSV
    separator: str = ","
    include_header: bool = True
    encoding: str = "utf-8"

    # Processing
    max_workers: int = 0
    strict_source_unit: bool = False
    districts_path: str = ""  # empty: bundled districts.json
    auto_watch: bool = True
    process_interval: int = 2  # seconds to wait before reading a new inbox file

    def __post_init__(self):
        if self.separator not in SUPPORTED_SEPARATORS:
            raise ValueError(f"Unsupported separator {self.separator!r}. Use one of {SUPPORTED_SEPARATORS}")

    @classmethod
    def from_json(cls, path: str) -> 'Config':
        """Load configuration from JSON file, defaults when the file does not exist"""
        if os.path.exists(path):
            with open(path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)

            known = {f.name for f in fields(cls)}
            unknown = set(config_data) - known
            if unknown:
                logger.warning(f"Ignoring unknown configuration keys in {path}: {sorted(unknown)}")

            return cls(**{k: v for k, v in config_data.items() if k in known})

        # Return default configuration if file doesn't exist
        return cls()

    def save(self, path: str):
        """Save configuration to JSON file"""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2)


# ==================== Batch Processing ====================
@dataclass(frozen=True)
class BatchError:
    """A line that could not be processed"""
    line: int
    cnj: str
    error: str


@dataclass
class BatchResult:
    """Counters and errors of one batch run"""
    total_processed: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    errors: List[BatchError] = field(default_factory=list)
    analyses: List[AnalysisCNJ] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_processed': self.total_processed,
            'valid_count': self.valid_count,
            'invalid_count': self.invalid_count,
            'errors': [asdict(e) for e in self.errors],
        }


def error_analysis(cnj: str, message: str) -> AnalysisCNJ:
    """Placeholder row for a record whose analysis failed"""
    return AnalysisCNJ(
        received_cnj=cnj,
        valid_cnj=False,
        segment_name=message,
        segment_short='ERRO',
        source_unit_type=message,
        source_unit_number='',
        court_type=message,
        court_number='',
        detailed=DecomposedCNJ(
            lawsuit_cnj_format='', lawsuit_number='', verifying_digit='',
            protocol_year='', segment='', court='', source_unit='', arg_number='',
        ),
    )


def escape_csv_cell(cell: str, separator: str = OUTPUT_DELIMITER) -> str:
    """Quote a cell (RFC 4180) when it holds the separator, a quote or a line break"""
    if separator in cell or '"' in cell or '\n' in cell or '\r' in cell:
        return '"' + cell.replace('"', '""') + '"'
    return cell


def analysis_to_row(analysis: AnalysisCNJ) -> List[str]:
    detailed = analysis.detailed
    return [
        analysis.received_cnj,
        'true' if analysis.valid_cnj else 'false',
        analysis.segment_name,
        analysis.segment_short,
        analysis.source_unit_type,
        analysis.source_unit_number,
        detailed.district,
        analysis.court_type,
        analysis.court_number,
        detailed.uf,
        detailed.lawsuit_number,
        detailed.verifying_digit,
        detailed.protocol_year,
        detailed.segment,
        detailed.court,
        detailed.source_unit,
    ]


def results_to_dataframe(analyses: List[AnalysisCNJ]) -> pd.DataFrame:
    """Analyses as a DataFrame with the CSV output columns"""
    return pd.DataFrame([analysis_to_row(a) for a in analyses], columns=CSV_HEADERS)


def check_separator(separator: str) -> str:
    """Input separators must be a single character"""
    if not isinstance(separator, str) or len(separator) != 1:
        raise ValueError(f"Separator must be a single character, got {separator!r}")
    return separator


def validate_csv_format(content: str, separator: str = ',') -> bool:
    """True when every non-blank line has a non-empty first column"""
    check_separator(separator)
    if not content or not content.strip():
        return False

    lines = [line for line in LINE_SPLIT_PATTERN.split(content) if line.strip()]
    return all(line.split(separator)[0].strip() for line in lines)


class BatchProcessor:
    """Line-oriented CSV processing of CNJ numbers"""

    def __init__(self, analyzer: Optional[CnjAnalyzer] = None, max_workers: int = 0):
        self.analyzer = analyzer or CnjAnalyzer()
        self.max_workers = max_workers

    def process_text(self, content: str, separator: str = ',') -> BatchResult:
        """
        Process CSV content whose first column holds CNJ numbers.

        Blank lines are skipped and not counted. Error line numbers refer to the
        physical line in the input. An invalid check digit counts as invalid
        without an error entry; a failed analysis is both an error and invalid.
        """
        check_separator(separator)
        result = BatchResult()
        candidates = []

        # Excel exports start with a byte order mark
        if content.startswith('\ufeff'):
            content = content[1:]

        for line_num, line in enumerate(LINE_SPLIT_PATTERN.split(content), 1):
            # Skip blank lines
            if not line.strip():
                continue

            result.total_processed += 1
            cnj = line.split(separator)[0].strip()

            if not cnj:
                result.errors.append(BatchError(line=line_num, cnj=line, error=MISSING_CNJ_MESSAGE))
                continue

            candidates.append((line_num, cnj))

        outcomes = self.analyzer.analyze_batch([cnj for _, cnj in candidates], max_workers=self.max_workers)

        for (line_num, cnj), outcome in zip(candidates, outcomes):
            if isinstance(outcome, AnalysisCNJ):
                result.analyses.append(outcome)
                if outcome.valid_cnj:
                    result.valid_count += 1
                else:
                    result.invalid_count += 1
            else:
                result.errors.append(BatchError(line=line_num, cnj=cnj, error=outcome.error))
                result.analyses.append(error_analysis(cnj, outcome.error))
                result.invalid_count += 1

        logger.info(f"Batch processed: {result.total_processed} lines, {result.valid_count} valid, "
                    f"{result.invalid_count} invalid, {len(result.errors)} errors")
        return result

    def process_batch(self, cnjs: List[str]) -> BatchResult:
        """Process a list of CNJ numbers; error lines are 1-based list positions"""
        result = BatchResult(total_processed=len(cnjs))
        outcomes = self.analyzer.analyze_batch([cnj.strip() for cnj in cnjs], max_workers=self.max_workers)

        for index, (cnj, outcome) in enumerate(zip(cnjs, outcomes), 1):
            if isinstance(outcome, AnalysisCNJ):
                result.analyses.append(outcome)
                if outcome.valid_cnj:
                    result.valid_count += 1
                else:
                    result.invalid_count += 1
            else:
                result.errors.append(BatchError(line=index, cnj=cnj, error=outcome.error))

        return result

    @staticmethod
    def render(analyses: List[AnalysisCNJ], include_header: bool = True) -> str:
        """Render analyses as comma separated CSV with 16 fixed columns"""
        lines = []

        if include_header:
            lines.append(OUTPUT_DELIMITER.join(CSV_HEADERS))

        for analysis in analyses:
            lines.append(OUTPUT_DELIMITER.join(escape_csv_cell(cell) for cell in analysis_to_row(analysis)))

        return '\n'.join(lines)


# ==================== File Processing ====================
class FileProcessor:
    """Reads CNJ files, processes them and writes the result CSV"""

    def __init__(self, config: Config):
        self.config = config
        self._setup_districts()
        self.analyzer = CnjAnalyzer(strict_source_unit=config.strict_source_unit)
        self.batch_processor = BatchProcessor(self.analyzer, max_workers=config.max_workers)

    def _setup_districts(self):
        """Load a custom district dataset once, before any analysis"""
        if self.config.districts_path:
            set_district_index(load_district_index(self.config.districts_path))

    def _setup_directories(self):
        """Create necessary directories"""
        for dir_path in [self.config.input_dir, self.config.processed_dir, self.config.output_dir]:
            if dir_path:
                Path(dir_path).mkdir(parents=True, exist_ok=True)

    def default_output_path(self, input_path: str) -> str:
        """<input-stem>_processed.csv next to the input, or in output_dir when configured"""
        source = Path(input_path)
        output_dir = Path(self.config.output_dir) if self.config.output_dir else source.parent
        return str(output_dir / f"{source.stem}_processed.csv")

    def is_output_file(self, file_path: str) -> bool:
        """True for result files, which must never be picked up as inbox input"""
        path = Path(file_path)
        if path.stem.endswith('_processed'):
            return True
        if not self.config.output_dir:
            return False
        return path.resolve().parent == Path(self.config.output_dir).resolve()

    def process_file(self, input_path: str, output_path: Optional[str] = None,
                     separator: Optional[str] = None, include_header: Optional[bool] = None,
                     encoding: Optional[str] = None) -> Dict[str, Any]:
        """Process a single CNJ file and write the analysis CSV"""
        logger.info(f"Processing file: {input_path}")

        separator = separator or self.config.separator
        include_header = self.config.include_header if include_header is None else include_header
        encoding = encoding or self.config.encoding
        output_path = output_path or self.default_output_path(input_path)

        start_time = time.perf_counter()

        try:
            with open(input_path, 'r', encoding=encoding) as f:
                content = f.read()
        except (OSError, UnicodeDecodeError, LookupError) as e:
            logger.error(f"Error reading {input_path}: {e}")
            return {"status": "failed", "reason": f"read_error: {e}", "input_file": input_path}

        processing_result = self.batch_processor.process_text(content, separator=separator)
        csv_output = BatchProcessor.render(processing_result.analyses, include_header)

        try:
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding=encoding, newline='') as f:
                f.write(csv_output)
        except (OSError, UnicodeEncodeError, LookupError) as e:
            logger.error(f"Error writing {output_path}: {e}")
            return {"status": "failed", "reason": f"write_error: {e}", "input_file": input_path}

        processing_time = max(1, round((time.perf_counter() - start_time) * 1000))
        statistics = self._calculate_stats(processing_result, processing_time)

        logger.info(f"File processed successfully: {input_path} -> {output_path} "
                    f"({statistics['valid_cnjs']}/{statistics['total_cnjs']} valid)")

        return {
            "status": "success",
            "input_file": input_path,
            "output_file": output_path,
            "processing_result": processing_result,
            "statistics": statistics,
        }

    def _calculate_stats(self, result: BatchResult, processing_time: int) -> Dict[str, Any]:
        """Calculate processing statistics"""
        total = result.total_processed
        return {
            'total_cnjs': total,
            'valid_cnjs': result.valid_count,
            'invalid_cnjs': result.invalid_count,
            'error_count': len(result.errors),
            'processing_time': processing_time,
            'success_rate': (result.valid_count / total * 100) if total > 0 else 0,
            'throughput_per_second': total / (processing_time / 1000),
        }

    def process_inbox_file(self, file_path: str) -> Dict[str, Any]:
        """Process a file dropped in the inbox and move it to the processed archive"""
        self._setup_directories()
        result = self.process_file(file_path)
        if result['status'] == 'success':
            self._archive_file(file_path)
        return result

    def process_all_files(self) -> List[Dict[str, Any]]:
        """Process every file currently in the inbox"""
        self._setup_directories()
        results = []
        for file_path in sorted(Path(self.config.input_dir).glob("*")):
            if file_path.is_file() and not self.is_output_file(str(file_path)):
                results.append(self.process_inbox_file(str(file_path)))
        return results

    def _archive_file(self, source_path: str):
        """Move processed input into the processed directory"""
        timestamp = datetime.now().strftime('%Y%m%d%H%M%S')
        source = Path(source_path)
        dest_path = Path(self.config.processed_dir) / f"{source.stem}_{timestamp}{source.suffix}"
        try:
            shutil.move(str(source), str(dest_path))
            logger.info(f"Archived {source.name} to {dest_path}")
        except OSError as e:
            logger.error(f"Could not archive {source_path}: {e}")


# ==================== File Watcher ====================
class FileWatcher(FileSystemEventHandler):
    """Watch the inbox directory for new CNJ files"""

    def __init__(self, processor: FileProcessor):
        self.processor = processor
        self.processing_queue = []
        self.is_processing = False

    def on_created(self, event):
        """Handle file creation event"""
        if event.is_directory:
            return
        if self.processor.is_output_file(event.src_path):
            logger.debug(f"Ignoring result file: {event.src_path}")
            return

        logger.info(f"New file detected: {event.src_path}")
        self.processing_queue.append(event.src_path)
        self.process_queue()

    def process_queue(self):
        """Process files in queue"""
        if self.is_processing or not self.processing_queue:
            return

        self.is_processing = True
        try:
            while self.processing_queue:
                file_path = self.processing_queue.pop(0)
                # Wait a bit to ensure file is fully written
                time.sleep(self.processor.config.process_interval)
                self.processor.process_inbox_file(file_path)
        finally:
            self.is_processing = False


# ==================== CLI Interface ====================
class CnjValidatorCLI:
    """Interactive command-line interface"""

    def __init__(self, config_path: str = "config.json"):
        self.config_path = config_path
        self.config = Config.from_json(config_path)
        self.processor = FileProcessor(self.config)

    def run(self):
        """Run the CLI"""
        print("=" * 50)
        print("  CNJ Validator - Local Edition")
        print("=" * 50)

        while True:
            print("\nOptions:")
            print("1. Analyze a CNJ number")
            print("2. Process single file")
            print("3. Process all files in inbox")
            print("4. Start file watcher")
            print("5. Configure settings")
            print("6. Exit")

            choice = input("\nSelect option: ").strip()

            if choice == "1":
                self.analyze_single()
            elif choice == "2":
                self.process_single_file()
            elif choice == "3":
                self.process_all_files()
            elif choice == "4":
                self.start_watcher()
            elif choice == "5":
                self.configure_settings()
            elif choice == "6":
                print("Goodbye!")
                break
            else:
                print("Invalid option")

    def analyze_single(self):
        """Analyze one CNJ number"""
        cnj = input("Enter CNJ number: ").strip()
        try:
            analysis = self.processor.analyzer.analyze(cnj)
        except CNJValidationError as e:
            print(f"\nError: {e.message}")
            return

        print(f"\nValid: {'yes' if analysis.valid_cnj else 'no'}")
        print(write_cnj(analysis))

    def process_single_file(self):
        """Process a single file"""
        file_path = input("Enter file path: ").strip()
        if os.path.exists(file_path):
            result = self.processor.process_file(file_path)
            print_report(result)
        else:
            print("File not found")

    def process_all_files(self):
        """Process all files in inbox"""
        results = self.processor.process_all_files()
        print(f"Processed {len(results)} files")
        for result in results:
            print(f"Processed: {result['input_file']} - {result['status']}")

    def start_watcher(self):
        """Start file watcher"""
        Path(self.config.input_dir).mkdir(parents=True, exist_ok=True)
        print(f"Watching directory: {self.config.input_dir}")
        print("Press Ctrl+C to stop")

        event_handler = FileWatcher(self.processor)
        observer = Observer()
        observer.schedule(event_handler, self.config.input_dir, recursive=False)
        observer.start()

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            observer.stop()
        observer.join()
        print("\nWatcher stopped")

    def configure_settings(self):
        """Configure application settings"""
        print("\nCurrent Settings:")
        print(f"Input Directory: {self.config.input_dir}")
        print(f"Output Directory: {self.config.output_dir or '(next to input)'}")
        print(f"Separator: {self.config.separator!r}")
        print(f"Encoding: {self.config.encoding}")

        change = input("\nChange settings? (y/n): ").strip().lower()
        if change == 'y':
            self.config.input_dir = input(f"Input Directory [{self.config.input_dir}]: ").strip() or self.config.input_dir
            self.config.output_dir = input(f"Output Directory [{self.config.output_dir}]: ").strip() or self.config.output_dir
            separator = input(f"Separator [{self.config.separator}]: ").strip() or self.config.separator
            if separator in SUPPORTED_SEPARATORS:
                self.config.separator = separator
            else:
                print(f"Unsupported separator, keeping {self.config.separator!r}")
            self.config.encoding = input(f"Encoding [{self.config.encoding}]: ").strip() or self.config.encoding

            self.config.save(self.config_path)
            print("Settings saved!")


def print_report(result: Dict[str, Any], max_errors: int = 5):
    """Print processing statistics and the first errors"""
    if result['status'] != 'success':
        print(f"\nProcessing failed: {result['reason']}")
        return

    stats = result['statistics']
    print("\nProcessing finished")
    print(f"  Total CNJs: {stats['total_cnjs']}")
    print(f"  Valid CNJs: {stats['valid_cnjs']}")
    print(f"  Invalid CNJs: {stats['invalid_cnjs']}")
    print(f"  Errors: {stats['error_count']}")
    print(f"  Processing time: {stats['processing_time']}ms")
    print(f"  Success rate: {stats['success_rate']:.1f}%")
    print(f"  Throughput: {stats['throughput_per_second']:.2f} CNJs/second")
    print(f"\nOutput file: {result['output_file']}")

    errors = result['processing_result'].errors
    if errors:
        print("\nErrors:")
        for error in errors[:max_errors]:
            print(f"  Line {error.line}: {error.cnj} - {error.error}")
        if len(errors) > max_errors:
            print(f"  ... and {len(errors) - max_errors} more errors")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cnj-process",
        description="Validate and analyze CNJ process numbers from a CSV file",
    )
    parser.add_argument("input_file", help="CSV file whose first column holds CNJ numbers")
    parser.add_argument("output_file", nargs="?", help="output CSV (default: <output_dir>/<input>_processed.csv)")
    parser.add_argument("--separator", choices=SUPPORTED_SEPARATORS, help="input column separator")
    parser.add_argument("--no-header", action="store_true", help="omit the header row in the output")
    parser.add_argument("--encoding", help="input and output file encoding")
    parser.add_argument("--config", default="config.json", help="configuration file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point: process a file from arguments, or run the interactive menu"""
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        CnjValidatorCLI().run()
        return 0

    args = build_parser().parse_args(argv)
    config = Config.from_json(args.config)
    processor = FileProcessor(config)

    if not os.path.exists(args.input_file):
        print(f"Input file not found: {args.input_file}")
        return 1

    result = processor.process_file(
        args.input_file,
        args.output_file,
        separator=args.separator,
        include_header=False if args.no_header else None,
        encoding=args.encoding,
    )
    print_report(result)
    return 0 if result['status'] == 'success' else 1


# ==================== Main Entry Point ====================
if __name__ == "__main__":
    sys.exit(main())
