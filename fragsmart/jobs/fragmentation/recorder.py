"""
Output of fragmentation results in xlsx, csv or txt format.
"""

import logging
import os
from typing import Any, Dict, List, Tuple

import pandas as pd

from .statistics import fragments_dataframe, frequency_summary

logger = logging.getLogger(__name__)


class ResultsRecorder:
    """
    Writes fragment tables of fragmentation runs to files.

    Handles all output file generation (xlsx/csv/txt), including header
    information and one sheet per table.

    Attributes:
        output_dir (str): Directory for output files.
        label (str): Label prefix for output filenames.
        output_format (str): Output format ('xlsx', 'csv', 'txt').
    """

    SUPPORTED_FORMATS = {"xlsx", "csv", "txt"}

    def __init__(
        self,
        output_dir: str,
        label: str = None,
        output_format: str = "csv",
    ):
        """
        Initialize the results recorder.

        Args:
            output_dir (str): Directory for output files.
            label (str): Label prefix for output filenames.
            output_format (str): Output format. Defaults to 'csv'.
                Supported: 'xlsx', 'csv', 'txt'.
        """
        self.output_dir = output_dir
        self.label = label
        self.output_format = output_format.lower().lstrip(".")

        if self.output_format not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported output format: '{output_format}'. "
                f"Supported formats: {self.SUPPORTED_FORMATS}"
            )

        os.makedirs(output_dir, exist_ok=True)

    def get_filename(self, name: str) -> str:
        """
        Generate output filename based on label, run name, and format.

        Returns:
            str: Full path to output file.
        """
        label_prefix = f"{self.label}_" if self.label else ""
        filename = f"{label_prefix}{name}.{self.output_format}"
        return os.path.join(self.output_dir, filename)

    @staticmethod
    def header_info(result) -> List[Tuple[str, Any]]:
        """Header lines describing a FragmentationResult."""
        summary = frequency_summary(result.table)
        return [
            ("", "Fragmentation Results"),
            ("Name", result.name),
            ("Status", result.status.value),
            ("Molecules", result.num_molecules),
            ("Fragments", result.num_fragments),
            ("Total frequency", summary["total"]),
            ("Errors", result.num_errors),
            ("Time (s)", f"{result.elapsed_time:.2f}"),
        ]

    @staticmethod
    def molecules_dataframe(molecules, fragmentation_name) -> pd.DataFrame:
        """One row per molecule and fragment with the occurrence count."""
        rows = []
        for molecule in molecules:
            frequencies = molecule.get_fragment_frequencies(
                fragmentation_name
            )
            if not frequencies:
                continue
            for key, count in frequencies.items():
                rows.append(
                    {
                        "Molecule": molecule.name,
                        "Fragment": key,
                        "Frequency": count,
                    }
                )
        return pd.DataFrame(
            rows, columns=["Molecule", "Fragment", "Frequency"]
        )

    def record_results(self, result, molecules=None) -> str:
        """
        Record a fragmentation result to file.

        Args:
            result (FragmentationResult): Result to write.
            molecules (list[MoleculeRecord]): Input molecules; when given
                their per molecule fragment frequencies are written too.

        Returns:
            str: Path to the output file.
        """
        filename = self.get_filename(result.name)
        sheets_data = {"Fragments": fragments_dataframe(result.table)}
        if molecules is not None:
            sheets_data["Molecules"] = self.molecules_dataframe(
                molecules, result.name
            )
        header_info = self.header_info(result)

        if self.output_format == "xlsx":
            self._write_xlsx(filename, header_info, sheets_data)
        elif self.output_format == "csv":
            self._write_csv(filename, header_info, sheets_data)
        else:
            self._write_txt(filename, header_info, sheets_data)

        logger.info(f"Results saved to {filename}")
        return filename

    @staticmethod
    def _header_line(key, value):
        # value can be 0 or False, so check for None explicitly
        if key and value is not None and value != "":
            return f"{key}: {value}"
        elif value is not None and value != "":
            return str(value)
        return str(key)

    def _write_xlsx(
        self,
        filename: str,
        header_info: List[Tuple[str, Any]],
        sheets_data: Dict[str, pd.DataFrame],
    ):
        """Write results to Excel format with one sheet per table."""
        with pd.ExcelWriter(filename, engine="openpyxl") as writer:
            first_sheet = True
            for sheet_name, df in sheets_data.items():
                if first_sheet:
                    df.to_excel(
                        writer,
                        sheet_name=sheet_name,
                        startrow=len(header_info) + 1,
                        index=False,
                    )
                    worksheet = writer.sheets[sheet_name]
                    for row, (key, value) in enumerate(header_info, start=1):
                        worksheet[f"A{row}"] = self._header_line(key, value)
                    first_sheet = False
                else:
                    df.to_excel(writer, sheet_name=sheet_name, index=False)
                self._auto_adjust_columns(writer.sheets[sheet_name])

    def _auto_adjust_columns(self, worksheet, max_width: int = 50):
        """Auto-adjust column widths for a worksheet."""
        for column_cells in worksheet.columns:
            max_length = 0
            column_letter = column_cells[0].column_letter
            for cell in column_cells:
                cell_length = len(str(cell.value)) if cell.value else 0
                max_length = max(max_length, cell_length)
            worksheet.column_dimensions[column_letter].width = min(
                max_length + 2, max_width
            )

    def _write_csv(
        self,
        filename: str,
        header_info: List[Tuple[str, Any]],
        sheets_data: Dict[str, pd.DataFrame],
    ):
        """Write the first table with a commented header, others separately."""
        base_name = filename[:-4]  # Remove .csv extension
        sheets = list(sheets_data.items())

        with open(filename, "w") as f:
            for key, value in header_info:
                f.write(f"# {self._header_line(key, value)}\n")
        sheet_name, df = sheets[0]
        df.to_csv(filename, mode="a", index=False)

        for sheet_name, df in sheets[1:]:
            sheet_filename = f"{base_name}_{sheet_name}.csv"
            df.to_csv(sheet_filename, index=False)
            logger.info(f"Sheet '{sheet_name}' saved to {sheet_filename}")

    def _write_txt(
        self,
        filename: str,
        header_info: List[Tuple[str, Any]],
        sheets_data: Dict[str, pd.DataFrame],
    ):
        """Write results to plain text format."""
        with open(filename, "w") as f:
            f.write("=" * 60 + "\n")
            for key, value in header_info:
                f.write(f"{self._header_line(key, value)}\n")
            f.write("=" * 60 + "\n\n")

            for sheet_name, df in sheets_data.items():
                f.write(f"--- {sheet_name} ---\n")
                f.write(df.to_string(index=False))
                f.write("\n\n")
