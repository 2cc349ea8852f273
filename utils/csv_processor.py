import pandas as pd
from io import StringIO
from typing import Dict, List, Tuple
from werkzeug.datastructures import FileStorage

from utils.errors import ValidationError

# Bulk lead upload columns, matched by exact (case-sensitive) name
LEAD_CSV_COLUMNS = ["Name", "Phone", "Email", "InterestedCourse", "Source"]


class CSVProcessor:
    """Handle CSV text/file parsing for bulk lead uploads"""

    ENCODINGS_TO_TRY = ['utf-8-sig', 'utf-8', 'latin-1', 'cp1252']

    @staticmethod
    def decode_upload(file: FileStorage) -> str:
        """
        Read an uploaded file and return its text
        Raises ValidationError when no known encoding fits
        """
        file_content = file.read()

        for enc in CSVProcessor.ENCODINGS_TO_TRY:
            try:
                return file_content.decode(enc)
            except UnicodeDecodeError:
                continue

        raise ValidationError("Unable to decode file. Please check file encoding.")

    @staticmethod
    def read_csv_text(csv_text: str) -> pd.DataFrame:
        """
        Parse CSV text into a DataFrame of stripped strings

        Every cell is read as text so phone numbers keep their leading zeros.
        Columns stay at their header positions: cells past the last header
        (trailing commas from spreadsheet exports) are dropped.
        """
        if not csv_text or not csv_text.strip():
            raise ValidationError("csv string required")

        try:
            header = pd.read_csv(StringIO(csv_text), nrows=0, dtype=str, engine="python").columns
            width = len(header)

            df = pd.read_csv(
                StringIO(csv_text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
                engine="python",
                # Rows longer than the header keep their first `width` cells
                on_bad_lines=lambda cells: cells[:width],
            )
        except pd.errors.EmptyDataError:
            raise ValidationError("CSV contains no data")
        except pd.errors.ParserError as e:
            raise ValidationError(f"CSV parsing error: {str(e)}")

        # Clean column names (remove extra spaces)
        df.columns = [str(col).strip() for col in df.columns]
        return df.fillna('').apply(lambda col: col.astype(str).str.strip())

    @staticmethod
    def validate_csv_structure(df: pd.DataFrame, required_columns: List[str]) -> Tuple[bool, List[str]]:
        """
        Validate CSV has required columns
        Returns: (is_valid, missing_columns)
        """
        missing_columns = [col for col in required_columns if col not in df.columns]
        return len(missing_columns) == 0, missing_columns

    @staticmethod
    def read_lead_rows(csv_text: str) -> List[Dict[str, str]]:
        """
        Parse a bulk lead upload into row dictionaries keyed by LEAD_CSV_COLUMNS

        Fully blank rows are dropped here; rows with an empty Name are kept so
        the caller can count them as skipped.
        """
        df = CSVProcessor.read_csv_text(csv_text)

        is_valid, missing = CSVProcessor.validate_csv_structure(df, LEAD_CSV_COLUMNS)
        if not is_valid:
            raise ValidationError(
                f"Headers must be {','.join(LEAD_CSV_COLUMNS)} (missing: {', '.join(missing)})"
            )

        rows = []
        for record in df[LEAD_CSV_COLUMNS].to_dict(orient="records"):
            if not ''.join(record.values()):
                continue
            rows.append(record)

        if not rows:
            raise ValidationError("No data rows")
        return rows
