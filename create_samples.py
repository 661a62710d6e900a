"""
Create sample test files for CNJ Validator
This script generates various test cases
"""

from pathlib import Path
from typing import List, Tuple

from cnj_validator_base import MATH_SUFFIX, calculate_verifying_digit


def build_cnj(lawsuit: str, year: str, segment: str, court: str, source_unit: str,
              masked: bool = True) -> str:
    """Build a CNJ number with a correct verifying digit"""
    digit = calculate_verifying_digit(lawsuit + year + segment + court + source_unit + MATH_SUFFIX)
    if masked:
        return f"{lawsuit}-{digit}.{year}.{segment}.{court}.{source_unit}"
    return f"{lawsuit}{digit}{year}{segment}{court}{source_unit}"


def wrong_digit(cnj: str) -> str:
    """Same number with a verifying digit that cannot match"""
    digit = int(cnj[8:10]) if '-' in cnj else int(cnj[7:9])
    bad = f"{(digit + 1) % 100:02d}"
    if '-' in cnj:
        return cnj[:8] + bad + cnj[10:]
    return cnj[:7] + bad + cnj[9:]


def create_sample_files(inbox: str = "cnj-inbox") -> List[Tuple[str, str]]:
    """Create sample files with various test cases"""
    inbox_dir = Path(inbox)
    inbox_dir.mkdir(parents=True, exist_ok=True)

    valid = [
        build_cnj('0001327', '2018', '8', '26', '0158'),
        build_cnj('1234567', '2023', '4', '01', '0000'),
        build_cnj('0000456', '2022', '5', '02', '0200'),
        build_cnj('0000789', '2019', '6', '21', '0010'),
        build_cnj('0001000', '2020', '7', '04', '0100'),
        build_cnj('0000001', '2015', '9', '13', '0001'),
        build_cnj('0000333', '2020', '8', '26', '9001', masked=False),
    ]

    # Sample 1: all valid
    sample1 = "\n".join(valid) + "\n"

    # Sample 2: mixed, with blank lines, wrong digits and malformed entries
    sample2 = "\n".join([
        "cnj,cliente,observacao",
        f"{valid[0]},Cliente A,valido",
        "",
        f"{wrong_digit(valid[1])},Cliente B,digito errado",
        "invalid-cnj,Cliente C,malformado",
        f"{build_cnj('0000001', '2020', '6', '90', '0100')},Cliente D,tribunal inexistente",
        ",Cliente E,sem cnj",
        f"{valid[2]},Cliente F,valido",
    ]) + "\n"

    # Sample 3: semicolon separated with Windows line endings
    sample3 = "\r\n".join(f"{cnj};linha {i}" for i, cnj in enumerate(valid, 1)) + "\r\n"

    files_created = []
    samples = [
        ("sample_all_valid.csv", sample1, "All valid CNJ numbers"),
        ("sample_mixed.csv", sample2, "Mixed valid, invalid and malformed numbers"),
        ("sample_semicolon.csv", sample3, "Semicolon separated, CRLF line endings"),
    ]

    for filename, content, description in samples:
        filepath = inbox_dir / filename
        with open(filepath, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        files_created.append((filename, description))
        print(f"✅ Created: {filename} - {description}")

    return files_created


def main():
    print("=" * 50)
    print("  Creating Sample Test Files")
    print("=" * 50)
    print()

    files = create_sample_files()

    print()
    print("=" * 50)
    print(f"✅ Created {len(files)} sample files in cnj-inbox/")
    print()
    print("Run the validator:")
    print("  streamlit run streamlit_app.py")
    print("Or process directly:")
    print("  python cnj_validator_local.py cnj-inbox/sample_mixed.csv")
    print("  python cnj_validator_local.py cnj-inbox/sample_semicolon.csv --separator ';'")
    print("=" * 50)


if __name__ == "__main__":
    main()
