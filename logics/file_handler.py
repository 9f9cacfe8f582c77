import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from logics import config
from logics.csv_decoder import parse_csv_to_dict
from logics.data_model import Source
from logics.errors import SourceReadFailure
from logics.reporter import kpi_lines


def read_source_text(path):
    """
    Read a source file as text, trying several encodings in turn.

    Raises:
        OSError: If the file cannot be opened.
        ValueError: If no encoding in config.READ_ENCODINGS can decode it.
    """
    last_error = None
    for enc in config.READ_ENCODINGS:
        try:
            with open(path, 'r', encoding=enc, newline='') as fh:
                text = fh.read()
            print(f"[DEBUG] {Path(path).name} read with encoding: {enc}")
            return text
        except (UnicodeDecodeError, LookupError) as e:
            last_error = e
            continue
    raise ValueError(f"Could not read {Path(path).name} with any supported encoding") from last_error


def decode_source(slot, path):
    """Read and decode one slot into a Source. Named after the file it came from."""
    text = read_source_text(path)
    return Source(slot=slot, name=Path(path).name, features=parse_csv_to_dict(text), raw_text=text)


def load_individual_files(file_paths, progress_callback=None):
    """
    Read and decode the selected source files in parallel.

    The call returns only after every submitted slot has finished (success or
    failure), so callers never see a partially loaded run. A failure in one
    slot does not cancel the others.

    Args:
        file_paths: dict mapping slot (1..4) to file path; None entries are skipped.
        progress_callback: Optional callable(current_idx, total, filename).

    Returns:
        tuple: (sources, failures)
        - sources: dict of Source keyed by slot
        - failures: dict of SourceReadFailure keyed by slot
    """
    selected_files = {slot: path for slot, path in file_paths.items() if path is not None}
    sources = {}
    failures = {}
    if not selected_files:
        return sources, failures

    total_files = len(selected_files)
    completed = 0

    print(f"[LOAD] Reading {total_files} file(s) with {os.cpu_count()} workers...")
    with ThreadPoolExecutor(max_workers=min(total_files, os.cpu_count() or 4)) as executor:
        futures = {
            executor.submit(decode_source, slot, path): slot
            for slot, path in selected_files.items()
        }

        for future in as_completed(futures):
            slot = futures[future]
            path = selected_files[slot]
            completed += 1
            try:
                sources[slot] = future.result()
                print(f"[LOAD] Completed {completed}/{total_files}: File {slot} "
                      f"({len(sources[slot].features)} features)")
            except (OSError, ValueError) as e:
                failures[slot] = SourceReadFailure(slot, path, e)
                print(f"[ERROR] File {slot} failed: {e}")

            if progress_callback:
                progress_callback(completed, total_files, Path(path).name)

    return sources, failures


def build_export_path(directory, fmt='csv', now=None):
    """final_data_YYYY-MM-DD_HH-MM-SS.<fmt> inside directory (timestamp in UTC)."""
    if fmt not in config.EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    now = now or datetime.now(timezone.utc)
    filename = f"{config.EXPORT_FILENAME_PREFIX}{now.strftime(config.TIMESTAMP_FORMAT)}.{fmt}"
    return Path(directory) / filename


def write_csv_export(csv_text, path):
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(csv_text)
    print(f"[EXPORT] CSV written: {path}")


def export_to_excel(df, stats, path):
    """
    Export the comparison table to Excel.

    Sheet layout:
        - "Results": feature, one column per source, status and final value.
        - "Summary": one KPI caption per row.

    Values are written as plain text: a value such as "=1+1" or "http://..." is
    data to reconcile, not a formula or a hyperlink.
    """
    options = {'strings_to_formulas': False, 'strings_to_urls': False}
    with pd.ExcelWriter(path, engine='xlsxwriter', engine_kwargs={'options': options}) as writer:
        df.to_excel(writer, sheet_name='Results', index=False)
        summary = pd.DataFrame({'KPI': kpi_lines(stats)})
        summary.to_excel(writer, sheet_name='Summary', index=False)
    print(f"[EXPORT] Excel written: {path} ({len(df)} rows)")
