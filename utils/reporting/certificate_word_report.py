"""
Word certificate generator for compressive strength and absorption tests.

Builds the certificate document from the certificate view model produced by
the certificate service.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Cm, Pt, RGBColor


# (key, header, decimals); decimals None means text
RESULT_COLUMNS: Dict[str, List[Tuple[str, str, Optional[int]]]] = {
    'concrete': [
        ('sample_id', 'Sample No.', None),
        ('length', 'Length (mm)', 1),
        ('width', 'Width (mm)', 1),
        ('height', 'Height (mm)', 1),
        ('weight', 'Weight (kg)', 3),
        ('density', 'Density (kg/m³)', 0),
        ('failure_load', 'Failure Load (kN)', 1),
        ('corrected_failure_load', 'Corrected Load (kN)', 1),
        ('compressive_strength', 'Strength (N/mm²)', 1),
    ],
    'cylinder': [
        ('sample_id', 'Sample No.', None),
        ('diameter', 'Diameter (mm)', 1),
        ('height', 'Height (mm)', 1),
        ('weight', 'Weight (kg)', 3),
        ('density', 'Density (kg/m³)', 0),
        ('failure_load', 'Failure Load (kN)', 1),
        ('corrected_failure_load', 'Corrected Load (kN)', 1),
        ('compressive_strength', 'Strength (N/mm²)', 1),
    ],
    'paver': [
        ('sample_id', 'Sample No.', None),
        ('plan_area', 'Plan Area (mm²)', 0),
        ('thickness', 'Thickness (mm)', 0),
        ('weight', 'Weight (kg)', 3),
        ('density', 'Density (kg/m³)', 0),
        ('failure_load', 'Failure Load (kN)', 1),
        ('corrected_failure_load', 'Corrected Load (kN)', 1),
        ('compressive_strength', 'Strength (N/mm²)', 1),
    ],
    'solid_block': [
        ('sample_id', 'Sample No.', None),
        ('length', 'Length (mm)', 1),
        ('width', 'Width (mm)', 1),
        ('height', 'Height (mm)', 1),
        ('weight', 'Weight (kg)', 3),
        ('area', 'Area (mm²)', 0),
        ('failure_load', 'Failure Load (kN)', 1),
        ('corrected_failure_load', 'Corrected Load (kN)', 1),
        ('compressive_strength', 'Strength (N/mm²)', 2),
    ],
    'hollow_block': [
        ('sample_id', 'Sample No.', None),
        ('length', 'Length (mm)', 1),
        ('width', 'Width (mm)', 1),
        ('height', 'Height (mm)', 1),
        ('gross_area', 'Gross Area (mm²)', 0),
        ('area', 'Net Area (mm²)', 0),
        ('failure_load', 'Failure Load (kN)', 1),
        ('corrected_failure_load', 'Corrected Load (kN)', 1),
        ('compressive_strength', 'Strength (N/mm²)', 2),
    ],
    'water_absorption': [
        ('sample_id', 'Sample No.', None),
        ('dry_weight', 'Oven Dry Weight (kg)', 3),
        ('soaked_weight', 'Soaked Weight (kg)', 3),
        ('mass_difference', 'Mass Difference (kg)', 3),
        ('water_absorption', 'Water Absorption (%)', 2),
    ],
}

DISCLAIMER = (
    "This certificate shall not be reproduced other than in full, except with prior written "
    "approval of the laboratory. The results pertain only to the item(s) tested as received."
)


def _fmt(value, decimals: Optional[int]) -> str:
    if value is None or value == '':
        return '-'
    if decimals is None:
        return str(value)
    try:
        return f'{float(value):.{decimals}f}'
    except (TypeError, ValueError):
        return str(value)


def _compact(table) -> None:
    for row in table.rows:
        for cell in row.cells:
            cell.paragraphs[0].paragraph_format.space_before = Pt(1)
            cell.paragraphs[0].paragraph_format.space_after = Pt(1)


class CertificateReportGenerator:
    """
    Generate test certificates as Word documents.

    Parameters
    ----------
    signature_folder : Path, optional
        Folder holding uploaded signature images
    logo_path : Path, optional
        Laboratory logo for the page header
    """

    def __init__(self, signature_folder: Optional[Path] = None,
                 logo_path: Optional[Path] = None):
        self.signature_folder = signature_folder
        self.logo_path = logo_path

    def generate_report(self, output_path: Path, data: Dict[str, Any]) -> Path:
        """
        Write the certificate document.

        Parameters
        ----------
        output_path : Path
            Path for output Word document
        data : Dict[str, Any]
            Certificate view model

        Returns
        -------
        Path
            Path to generated certificate
        """
        doc = self._create_document(data)
        doc.save(output_path)
        return output_path

    def _create_document(self, data: Dict[str, Any]) -> Document:
        doc = Document()

        style = doc.styles['Normal']
        style.paragraph_format.space_before = Pt(0)
        style.paragraph_format.space_after = Pt(3)
        style.paragraph_format.line_spacing = 1.0
        style.font.name = 'Calibri'
        style.font.size = Pt(10)

        dark_blue = RGBColor(0x1F, 0x3A, 0x5F)
        for i in range(1, 3):
            heading_style = doc.styles[f'Heading {i}']
            heading_style.paragraph_format.space_before = Pt(8)
            heading_style.paragraph_format.space_after = Pt(4)
            heading_style.font.color.rgb = dark_blue

        for section in doc.sections:
            section.top_margin = Cm(1.5)
            section.bottom_margin = Cm(1.5)
            section.left_margin = Cm(1.8)
            section.right_margin = Cm(1.8)
            self._add_header(section, data)
            self._add_footer(section)

        self._add_details(doc, data)
        self._add_results(doc, data)
        self._add_summary(doc, data)
        self._add_remarks(doc, data)
        self._add_signatures(doc, data)
        return doc

    def _add_header(self, section, data: Dict[str, Any]) -> None:
        header = section.header
        header.is_linked_to_previous = False

        lab_para = header.paragraphs[0] if header.paragraphs else header.add_paragraph()
        lab_para.alignment = WD_ALIGN_PARAGRAPH.LEFT
        if self.logo_path and self.logo_path.exists():
            lab_para.add_run().add_picture(str(self.logo_path), width=Cm(4.0))
        lab_run = lab_para.add_run(f"  {data.get('laboratory_name', '')}")
        lab_run.bold = True

        title_para = header.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        title_run = title_para.add_run(data.get('title', 'Test Certificate'))
        title_run.bold = True
        title_run.font.size = Pt(12)

        cert_para = header.add_paragraph()
        cert_para.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        cert_run = cert_para.add_run(
            f"Certificate No: {data.get('certificate_number', 'N/A')}   "
            f"Date of Issue: {data.get('date_of_issue', 'N/A')}   "
            f"Version: {data.get('version', '01')}")
        cert_run.font.size = Pt(8)

    def _add_footer(self, section) -> None:
        footer = section.footer
        footer.is_linked_to_previous = False
        footer_para = footer.paragraphs[0] if footer.paragraphs else footer.add_paragraph()
        footer_para.clear()
        footer_run = footer_para.add_run(DISCLAIMER)
        footer_run.font.size = Pt(7)
        footer_run.italic = True

    def _details_rows(self, data: Dict[str, Any]) -> List[Tuple[str, str, str, str]]:
        rows = [
            ('Client:', data.get('client_name'), 'Project:', data.get('project_title')),
            ('Address:', data.get('client_address'), 'Contact:', data.get('client_contact')),
            ('Date of Receipt:', data.get('date_of_receipt'),
             'Condition at Receipt:', data.get('condition_at_receipt')),
            ('Date of Casting:', data.get('date_of_casting'),
             'Date of Testing:', data.get('date_of_testing')),
            ('Testing Age:', data.get('testing_age'),
             'Temperature:', data.get('facility_temperature')),
            ('Test Method:', data.get('test_method'), 'Machine:', data.get('machine')),
            ('Area of Use:', data.get('area_of_use'), 'Tested by:', data.get('tested_by')),
            ('Test Location:', data.get('test_location'),
             'Type of Failure:', data.get('type_of_failure')),
        ]
        template = data.get('template')
        if template in ('concrete', 'cylinder'):
            rows.append(('Class of Concrete:', data.get('class_of_concrete'),
                         'Sample Size:', data.get('sample_type_size')))
        elif template == 'paver':
            rows.append(('Paver Type:', data.get('paver_type'),
                         'Thickness:', data.get('paver_thickness')))
        elif template in ('solid_block', 'hollow_block', 'water_absorption'):
            rows.append(('Sample Type:', data.get('sample_type'),
                         'Curing Condition:', data.get('curing_condition')))
        return rows

    def _add_details(self, doc: Document, data: Dict[str, Any]) -> None:
        doc.add_heading('Sample Information', level=1)
        doc.add_paragraph(data.get('sample_description', ''))

        rows = self._details_rows(data)
        table = doc.add_table(rows=len(rows), cols=4)
        table.style = 'Table Grid'
        for i, (label1, value1, label2, value2) in enumerate(rows):
            cells = table.rows[i].cells
            cells[0].text = label1
            cells[1].text = _fmt(value1, None) if value1 not in (None, '') else 'N/A'
            cells[2].text = label2
            cells[3].text = _fmt(value2, None) if value2 not in (None, '') else 'N/A'
            cells[0].paragraphs[0].runs[0].bold = True
            cells[2].paragraphs[0].runs[0].bold = True
        _compact(table)

    def _add_results(self, doc: Document, data: Dict[str, Any]) -> None:
        doc.add_heading('Test Results', level=1)
        columns = RESULT_COLUMNS.get(data.get('template'), RESULT_COLUMNS['concrete'])
        results = data.get('results') or []

        table = doc.add_table(rows=len(results) + 1, cols=len(columns))
        table.style = 'Table Grid'
        for i, (_, header_text, _) in enumerate(columns):
            cell = table.rows[0].cells[i]
            cell.text = header_text
            cell.paragraphs[0].runs[0].bold = True
            cell.paragraphs[0].runs[0].font.size = Pt(8)

        for r, result in enumerate(results, start=1):
            for c, (key, _, decimals) in enumerate(columns):
                table.rows[r].cells[c].text = _fmt(result.get(key), decimals)
        _compact(table)

        holes = data.get('computation_holes')
        if holes:
            doc.add_heading('Computation of Holes', level=2)
            hole_table = doc.add_table(rows=4, cols=4)
            hole_table.style = 'Table Grid'
            for i, text in enumerate(['Void', 'Length (mm)', 'Width (mm)', 'No.']):
                hole_table.rows[0].cells[i].text = text
                hole_table.rows[0].cells[i].paragraphs[0].runs[0].bold = True
            for i, (label, key) in enumerate([('Hole A', 'hole_a'), ('Hole B', 'hole_b'),
                                              ('Notch', 'notch')], start=1):
                hole = holes.get(key) or {}
                hole_table.rows[i].cells[0].text = label
                hole_table.rows[i].cells[1].text = _fmt(hole.get('l'), 1)
                hole_table.rows[i].cells[2].text = _fmt(hole.get('w'), 1)
                hole_table.rows[i].cells[3].text = _fmt(hole.get('no'), 0)
            _compact(hole_table)

    def _add_summary(self, doc: Document, data: Dict[str, Any]) -> None:
        para = doc.add_paragraph()
        para.paragraph_format.space_before = Pt(6)
        if data.get('template') == 'water_absorption':
            run = para.add_run('Average Water Absorption (%): ')
            run.bold = True
            para.add_run(_fmt(data.get('average_absorption'), 2))
            return
        run = para.add_run('Average Compressive Strength (N/mm²): ')
        run.bold = True
        decimals = 1 if data.get('template') in ('concrete', 'cylinder', 'paver') else 2
        para.add_run(_fmt(data.get('average_strength'), decimals))

    def _add_remarks(self, doc: Document, data: Dict[str, Any]) -> None:
        doc.add_heading('Remarks', level=1)
        for remark in data.get('remarks', []):
            doc.add_paragraph(remark, style='List Bullet')

    def _add_signatures(self, doc: Document, data: Dict[str, Any]) -> None:
        doc.add_heading('Approval', level=1)
        table = doc.add_table(rows=3, cols=3)
        table.style = 'Table Grid'
        for i, header_text in enumerate(['Role', 'Name', 'Signature']):
            table.rows[0].cells[i].text = header_text
            table.rows[0].cells[i].paragraphs[0].runs[0].bold = True

        for row, (label, key) in enumerate([('Checked by:', 'checked_by'),
                                            ('Approved by:', 'approved_by')], start=1):
            signatory = data.get(key) or {}
            table.rows[row].cells[0].text = label
            table.rows[row].cells[1].text = signatory.get('name') or 'N/A'
            signature = signatory.get('signature')
            if signature and self.signature_folder:
                path = Path(self.signature_folder) / signature
                if path.exists():
                    table.rows[row].cells[2].paragraphs[0].add_run().add_picture(
                        str(path), height=Cm(1.2))
        _compact(table)
