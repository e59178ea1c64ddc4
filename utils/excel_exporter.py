"""Export catalog rows to Excel (formatted) and CSV, plus the failed URL report"""
import json
import logging
import os

import pandas as pd
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from utils.data_processor import OUTPUT_COLUMNS

SHEET_NAME = 'Products'


class ExcelExporter:
    """Export scraped data to Excel/CSV with formatting"""

    def __init__(self):
        self.logger = logging.getLogger('excel_exporter')

    def export(self, rows, failed_urls, output_dir, basename):
        """
        Write <basename>.xlsx, <basename>.csv and <basename>_failed_urls.json

        Args:
            rows: Row dictionaries keyed by OUTPUT_COLUMNS
            failed_urls: List of {"url", "error"} dictionaries
            output_dir: Directory for the output files (created if missing)
            basename: File name without extension

        Returns:
            dict: Paths written, keyed by 'xlsx', 'csv' and 'failed_urls'
        """
        os.makedirs(output_dir, exist_ok=True)
        df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS).fillna('')

        paths = {
            'xlsx': os.path.join(output_dir, f"{basename}.xlsx"),
            'csv': os.path.join(output_dir, f"{basename}.csv"),
            'failed_urls': os.path.join(output_dir, f"{basename}_failed_urls.json"),
        }

        self.export_to_excel(df, paths['xlsx'])
        self.export_to_csv(df, paths['csv'])
        self.export_failed_urls(failed_urls, paths['failed_urls'])
        return paths

    def export_to_csv(self, df, filename):
        """Export DataFrame to CSV with the fixed column order"""
        try:
            self.logger.info(f"Exporting data to {filename}...")
            df.to_csv(filename, index=False, columns=OUTPUT_COLUMNS, encoding='utf-8')
            self.logger.info(f"✓ Successfully exported {len(df)} rows to {filename}")
        except OSError as e:
            self.logger.error(f"Error exporting to CSV: {str(e)}")
            raise

    def export_failed_urls(self, failed_urls, filename):
        """Write the URLs that produced no rows, with the reason"""
        try:
            with open(filename, 'w', encoding='utf-8') as f:
                json.dump(list(failed_urls), f, indent=2, ensure_ascii=False)
        except OSError as e:
            self.logger.error(f"Error writing failed URLs: {str(e)}")
            raise

        if failed_urls:
            self.logger.warning(f"⚠️ {len(failed_urls)} failed URLs written to {filename}")
        else:
            self.logger.info(f"✓ No failed URLs ({filename})")

    def export_to_excel(self, df, filename, apply_formatting=True):
        """
        Export DataFrame to Excel with optional formatting

        Args:
            df: pandas DataFrame
            filename: Output filename
            apply_formatting: Whether to apply Excel formatting
        """
        try:
            self.logger.info(f"Exporting data to {filename}...")

            output_dir = os.path.dirname(filename)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with pd.ExcelWriter(filename, engine='openpyxl') as writer:
                df.to_excel(writer, index=False, sheet_name=SHEET_NAME)

                if apply_formatting:
                    self._apply_formatting(writer.sheets[SHEET_NAME], df)

            self.logger.info(f"✓ Successfully exported {len(df)} rows to {filename}")

            file_size = os.path.getsize(filename) / (1024 * 1024)
            self.logger.info(f"✓ File size: {file_size:.2f} MB")

        except (OSError, ValueError) as e:
            self.logger.error(f"Error exporting to Excel: {str(e)}")
            raise

    def _apply_formatting(self, worksheet, df):
        """
        Header styling, borders, column widths and a frozen header row

        Args:
            worksheet: openpyxl worksheet
            df: pandas DataFrame
        """
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF", size=11)
        header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

        cell_alignment = Alignment(vertical="top", wrap_text=False)
        border = Border(
            left=Side(style='thin', color='D3D3D3'),
            right=Side(style='thin', color='D3D3D3'),
            top=Side(style='thin', color='D3D3D3'),
            bottom=Side(style='thin', color='D3D3D3')
        )

        for col_num, column in enumerate(df.columns, 1):
            cell = worksheet.cell(row=1, column=col_num)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = header_alignment
            cell.border = border

        # Width from the header and the first 100 values, capped
        for col_num, column in enumerate(df.columns, 1):
            max_length = len(str(column))
            for value in df[column].astype(str).head(100):
                max_length = max(max_length, len(value))
            worksheet.column_dimensions[get_column_letter(col_num)].width = min(max_length + 2, 50)

        for row_num in range(2, len(df) + 2):
            for col_num in range(1, len(df.columns) + 1):
                cell = worksheet.cell(row=row_num, column=col_num)
                cell.border = border
                cell.alignment = cell_alignment

        worksheet.freeze_panes = 'A2'

        specific_widths = {
            'Handle': 40,
            'Title': 50,
            'Body (HTML)': 60,
            'Tags': 40,
            'Image Src': 40,
            'Variant Image': 40,
            'original_product_url': 50,
        }
        for col_num, column in enumerate(df.columns, 1):
            if column in specific_widths:
                worksheet.column_dimensions[get_column_letter(col_num)].width = specific_widths[column]

        self.logger.info("✓ Excel formatting applied")

    def export_summary(self, stats, filename):
        """
        Add summary statistics as a 'Summary' sheet (new file if it does not exist)

        Args:
            stats: Dictionary of summary statistics
            filename: Output filename
        """
        summary_data = []
        for key, value in stats.items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    summary_data.append({'Metric': f"{key} - {sub_key}", 'Value': str(sub_value)})
            else:
                summary_data.append({'Metric': key, 'Value': str(value)})

        summary_df = pd.DataFrame(summary_data, columns=['Metric', 'Value'])

        try:
            if os.path.exists(filename):
                with pd.ExcelWriter(filename, engine='openpyxl', mode='a', if_sheet_exists='replace') as writer:
                    summary_df.to_excel(writer, index=False, sheet_name='Summary')
                self.logger.info("✓ Summary added to existing Excel file")
            else:
                with pd.ExcelWriter(filename, engine='openpyxl') as writer:
                    summary_df.to_excel(writer, index=False, sheet_name='Summary')
                self.logger.info("✓ Summary exported to new Excel file")
        except (OSError, ValueError) as e:
            self.logger.error(f"Error exporting summary: {str(e)}")
