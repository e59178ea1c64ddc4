"""Assemble catalog rows from scraped snapshots and prepare them for export"""
import pandas as pd
import logging

from scrapers.site_config import positional_option_name

MAX_OPTIONS = 3

OUTPUT_COLUMNS = [
    'Handle',
    'Title',
    'Body (HTML)',
    'Vendor',
    'Type',
    'Tags',
    'Published',
    'Option1 Name',
    'Option1 Value',
    'Option2 Name',
    'Option2 Value',
    'Option3 Name',
    'Option3 Value',
    'Variant SKU',
    'Variant Grams',
    'Variant Price',
    'Variant Compare At Price',
    'Cost per item',
    'Variant Taxable',
    'Variant Barcode',
    'Image Src',
    'Image Position',
    'Image Alt Text',
    'Gift Card',
    'Variant Image',
    'Variant Weight Unit',
    'Variant Fulfillment Service',
    'Variant Inventory Policy',
    'Variant Inventory Tracker',
    'original_product_url',
]

# Product-level columns, filled on the first row of a product only
FIRST_ROW_COLUMNS = [
    'Title',
    'Body (HTML)',
    'Vendor',
    'Type',
    'Tags',
    'Published',
    'Image Src',
    'Image Position',
    'Gift Card',
    'original_product_url',
]

PRICE_COLUMNS = ['Variant Price', 'Variant Compare At Price', 'Cost per item']


class DataProcessor:
    """Turn snapshots into catalog rows and DataFrames"""

    def __init__(self):
        self.logger = logging.getLogger('data_processor')

    @staticmethod
    def option_names(groups, combination):
        """Option name per traversed position: the combination's own names, then group names, then defaults"""
        names = []
        for position in range(min(len(combination.assignments), MAX_OPTIONS)):
            name = combination.assignments[position].group
            if not name and position < len(groups):
                name = groups[position].name
            names.append(name or positional_option_name(position))
        return names

    def assemble_rows(self, invariants, groups, snapshots, site_config):
        """
        Catalog rows for one product page

        Args:
            invariants: ProductInvariants of the page
            groups: VariantGroups discovered on the page (used for option names)
            snapshots: CombinationSnapshots in traversal order
            site_config: Site configuration (vendor, type, row defaults)

        Returns:
            list: Row dictionaries keyed by OUTPUT_COLUMNS
        """
        defaults = site_config.get('row_defaults', {})
        rows = []
        first_row = True

        if len(groups) > MAX_OPTIONS:
            self.logger.warning(f"{len(groups)} option groups found, only the first {MAX_OPTIONS} are exported")

        for snapshot in snapshots:
            combination = snapshot.combination
            names = self.option_names(groups, combination)
            values = [
                assignment.value or f"Unknown {names[position]}"
                for position, assignment in enumerate(combination.assignments[:MAX_OPTIONS])
            ]

            alt_text = invariants.title
            if values:
                alt_text = f"{invariants.title} - {' '.join(values)}"

            row = {column: '' for column in OUTPUT_COLUMNS}
            row.update({
                'Handle': invariants.handle,
                'Variant SKU': snapshot.sku,
                'Variant Price': snapshot.variant_price,
                'Variant Compare At Price': snapshot.compare_at_price,
                'Cost per item': snapshot.cost_per_item,
                'Variant Taxable': defaults.get('Variant Taxable', 'TRUE'),
                'Image Alt Text': alt_text,
                'Variant Image': snapshot.main_image_url,
                'Variant Weight Unit': defaults.get('Variant Weight Unit', ''),
                'Variant Fulfillment Service': defaults.get('Variant Fulfillment Service', ''),
                'Variant Inventory Policy': defaults.get('Variant Inventory Policy', ''),
                'Variant Inventory Tracker': defaults.get('Variant Inventory Tracker', ''),
            })
            for position, (name, value) in enumerate(zip(names, values), 1):
                row[f'Option{position} Name'] = name
                row[f'Option{position} Value'] = value

            if first_row:
                row.update({
                    'Title': invariants.title,
                    'Body (HTML)': invariants.description_html,
                    'Vendor': site_config.get('vendor', ''),
                    'Type': site_config.get('product_type', ''),
                    'Tags': invariants.tags,
                    'Published': defaults.get('Published', 'TRUE'),
                    'Image Src': invariants.main_image_url or snapshot.main_image_url,
                    'Image Position': 1,
                    'Gift Card': defaults.get('Gift Card', 'FALSE'),
                    'original_product_url': invariants.url,
                })
                first_row = False

            rows.append(row)

        return rows

    def process_products(self, rows):
        """
        Convert row dictionaries to a DataFrame with the fixed column order

        Args:
            rows: List of row dictionaries (from assemble_rows)

        Returns:
            pandas.DataFrame: Processed data
        """
        self.logger.info(f"Processing {len(rows)} rows...")
        df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS).fillna('')
        self.logger.info(f"Processed {len(df)} rows from {df['Handle'].nunique()} products")
        return df

    def validate_data(self, df):
        """
        Validate the processed data

        Duplicate (handle, option values) pairs are reported, not removed.

        Args:
            df: pandas DataFrame

        Returns:
            dict: Validation report
        """
        option_columns = [f'Option{position} Value' for position in range(1, MAX_OPTIONS + 1)]
        duplicated = df.duplicated(subset=['Handle'] + option_columns, keep='first')

        report = {
            'total_rows': len(df),
            'unique_products': df['Handle'].nunique(),
            'missing_sku': (df['Variant SKU'] == '').sum(),
            'missing_price': ((df['Cost per item'] == '') | (df['Cost per item'] == '0.00')).sum(),
            'missing_image': (df['Variant Image'] == '').sum(),
            'duplicate_variants': int(duplicated.sum()),
        }

        if report['duplicate_variants']:
            for _, row in df[duplicated].iterrows():
                values = ' / '.join(value for value in row[option_columns] if value)
                self.logger.warning(f"⚠️ Duplicate variant for {row['Handle']}: {values}")

        self.logger.info("Data Validation Report:")
        for key, value in report.items():
            self.logger.info(f"  {key}: {value}")

        return report

    def clean_data(self, df):
        """
        Standardize text fields; rows are never dropped, since continuation
        rows legitimately have no title

        Args:
            df: pandas DataFrame

        Returns:
            pandas.DataFrame: Cleaned data
        """
        self.logger.info("Cleaning data...")
        df = df.copy()

        text_columns = ['Title', 'Tags', 'Image Alt Text'] + [
            f'Option{position} Value' for position in range(1, MAX_OPTIONS + 1)
        ]
        for col in text_columns:
            df[col] = df[col].astype(str).str.strip()
            df[col] = df[col].str.replace(r'\s+', ' ', regex=True)
            df[col] = df[col].replace('nan', '')

        for col in PRICE_COLUMNS:
            df[col] = df[col].astype(str).str.strip().replace('nan', '')

        self.logger.info("Data cleaning complete")
        return df

    def get_summary_statistics(self, df):
        """
        Get summary statistics about the scraped data

        Args:
            df: pandas DataFrame

        Returns:
            dict: Summary statistics
        """
        stats = {
            'total_rows': len(df),
            'unique_products': df['Handle'].nunique() if 'Handle' in df.columns else 0,
            'variants_by_product': {},
            'average_price': 0,
            'price_range': {'min': 0, 'max': 0}
        }

        if 'Handle' in df.columns:
            stats['variants_by_product'] = df['Handle'].value_counts().to_dict()

        if 'Variant Price' in df.columns:
            prices = pd.to_numeric(df['Variant Price'], errors='coerce')
            prices = prices.dropna()

            if len(prices) > 0:
                stats['average_price'] = round(float(prices.mean()), 2)
                stats['price_range'] = {
                    'min': round(float(prices.min()), 2),
                    'max': round(float(prices.max()), 2)
                }

        return stats
