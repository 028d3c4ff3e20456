"""Report generation."""
from .certificate_word_report import CertificateReportGenerator

__all__ = ['CertificateReportGenerator']
