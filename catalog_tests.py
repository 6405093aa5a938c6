#!/usr/bin/env python3
"""
Test Catalog Generator for pixmap-bridge

Scans the test files and writes TEST_CATALOG.md, a markdown table of every
numbered test with the description from its # TEST###: comment.
"""

import re
from pathlib import Path
from typing import List
from dataclasses import dataclass


@dataclass
class TestInfo:
    """Information about a single test"""
    number: str
    function_name: str
    description: str
    file_path: str
    line_number: int


def extract_test_info(file_path: Path, root: Path) -> List[TestInfo]:
    """
    Extract numbered tests (def test_123_something) from one test file.

    The description is the comment block directly above the test, skipping
    decorators.
    """
    tests = []

    with open(file_path, 'r', encoding='utf-8') as f:
        lines = f.readlines()

    for i, line in enumerate(lines):
        test_match = re.match(r'\s*(?:async\s+)?def\s+(test_(\d+)_\w+)\s*\(', line)
        if not test_match:
            continue

        j = i - 1
        while j >= 0 and (lines[j].strip() == '' or lines[j].strip().startswith('@')):
            j -= 1

        description_lines = []
        while j >= 0 and lines[j].strip().startswith('#'):
            description_lines.insert(0, lines[j].strip()[1:].strip())
            j -= 1

        description = ' '.join(description_lines)
        description = re.sub(r'^TEST\d+:\s*', '', description)

        tests.append(TestInfo(
            number=test_match.group(2),
            function_name=test_match.group(1),
            description=description,
            file_path=str(file_path.relative_to(root)),
            line_number=i + 1,
        ))

    return tests


def scan_directory(root_dir: Path) -> List[TestInfo]:
    all_tests = []
    for py_file in sorted(root_dir.rglob('test_*.py')):
        all_tests.extend(extract_test_info(py_file, root_dir.parent))
    return all_tests


def generate_markdown_table(tests: List[TestInfo], output_file: Path):
    tests_sorted = sorted(tests, key=lambda t: int(t.number))

    with open(output_file, 'w', encoding='utf-8') as f:
        f.write("# pixmap-bridge Test Catalog\n\n")
        f.write(f"**Total Tests:** {len(tests_sorted)}\n\n")
        f.write("| Test # | Function Name | Description | Location |\n")
        f.write("|--------|---------------|-------------|----------|\n")

        for test in tests_sorted:
            description = test.description.replace('|', '\\|')
            location = f"{test.file_path}:{test.line_number}"
            f.write(f"| test{test.number} | `{test.function_name}` | {description} | {location} |\n")


def main():
    script_dir = Path(__file__).parent
    tests_dir = script_dir / 'tests'

    print("Scanning for tests in pixmap-bridge...")
    all_tests = scan_directory(tests_dir) if tests_dir.exists() else []
    print(f"Total tests found: {len(all_tests)}")

    output_file = script_dir / 'TEST_CATALOG.md'
    generate_markdown_table(all_tests, output_file)
    print(f"Catalog generated: {output_file}")


if __name__ == '__main__':
    main()
