"""Test catalogue import from Excel or CSV price lists."""
import logging
import re
from typing import BinaryIO

import pandas as pd

from app.extensions import db
from app.models import AuditLog, LabTest, MATERIAL_CATEGORIES
from utils.analysis.strength_calculations import to_number

logger = logging.getLogger(__name__)


class CatalogueImporter:
    """Create or update catalogue tests from a price-list spreadsheet."""

    # Spreadsheet header (upper-cased) -> LabTest attribute
    HEADER_MAP = {
        'MATERIAL CATEGORY': 'material_category',
        'MATERIAL TEST': 'name',
        'TEST METHOD(S)': 'method',
        'TEST METHOD': 'method',
        'AMOUNT (UGX)': 'unit_price',
        'UNIT PRICE': 'unit_price',
    }

    @classmethod
    def read_rows(cls, file: BinaryIO, filename: str) -> list:
        """Rows of the first sheet as dicts keyed by LabTest attribute.

        Unknown columns are dropped; rows without a test name are skipped.
        """
        if filename.lower().endswith('.csv'):
            df = pd.read_csv(file, dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(file, dtype=str).fillna('')
        df.columns = [str(c).strip().upper() for c in df.columns]

        rows = []
        for _, record in df.iterrows():
            row = {}
            for header, attr in cls.HEADER_MAP.items():
                if header in df.columns and attr not in row:
                    row[attr] = str(record[header]).strip()
            if row.get('name'):
                rows.append(row)
        return rows

    @classmethod
    def import_tests(cls, file: BinaryIO, filename: str, user, ip_address=None) -> dict:
        """Import a price list into the test catalogue.

        Parameters
        ----------
        file : BinaryIO
            Uploaded spreadsheet (.xlsx or .csv)
        filename : str
            Original file name, used to pick the reader
        user : User
            User recorded in the audit log

        Returns
        -------
        dict
            ``created``, ``updated`` counts and row ``errors``
        """
        results = {'created': 0, 'updated': 0, 'errors': []}

        try:
            rows = cls.read_rows(file, filename)
        except Exception as e:
            results['errors'].append(f'Failed to read {filename}: {e}')
            return results

        for line, row in enumerate(rows, start=2):
            category = (row.get('material_category') or '').strip().lower()
            if category not in MATERIAL_CATEGORIES:
                results['errors'].append(
                    f"Row {line}: unknown material category '{row.get('material_category')}'")
                continue
            price = to_number(re.sub(r'[^0-9.-]+', '', row.get('unit_price') or ''))

            test = LabTest.query.filter_by(name=row['name'], material_category=category).first()
            if test is None:
                test = LabTest(name=row['name'], material_category=category, is_active=True)
                db.session.add(test)
                results['created'] += 1
            else:
                results['updated'] += 1
            test.method = row.get('method') or test.method
            if price is not None:
                test.unit_price = price
            elif test.unit_price is None:
                test.unit_price = 0.0

        if results['created'] or results['updated']:
            AuditLog.record(user, 'IMPORT', 'lab_tests',
                            new_values={'file': filename, 'created': results['created'],
                                        'updated': results['updated']},
                            ip_address=ip_address)
            db.session.commit()
            logger.info('Catalogue import %s: %d created, %d updated', filename,
                        results['created'], results['updated'])
        return results
