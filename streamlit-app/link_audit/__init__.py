"""
Link Audit Module
Harvests the links of a travel site page and checks, page by page, whether
the tours, cruises, ships, activities and destinations they point to still
exist.
"""

from .audit import HarvestOutcome, run_audit, harvest_page, check_harvest, probe_url
from .browser_controller import BrowserController
from .config import AuditConfig
from .dispatcher import AvailabilityChecker, ProgressStatus
from .harvester import ContentRegionNotFound, harvest_links_from_html
from .patterns import PatternTag, UrlPattern, classify, is_true_destination
from .report import build_report, select_links_to_check, count_links_to_check, attach_availability
from .schemas import CheckResult, CheckedLink, Link, PageSnapshot, Report, report_to_dict
from .export import report_to_json, report_to_csv

__all__ = [
    'AuditConfig',
    'AvailabilityChecker',
    'BrowserController',
    'CheckResult',
    'CheckedLink',
    'ContentRegionNotFound',
    'HarvestOutcome',
    'Link',
    'PageSnapshot',
    'PatternTag',
    'ProgressStatus',
    'Report',
    'UrlPattern',
    'attach_availability',
    'build_report',
    'check_harvest',
    'classify',
    'count_links_to_check',
    'harvest_links_from_html',
    'harvest_page',
    'is_true_destination',
    'probe_url',
    'report_to_csv',
    'report_to_dict',
    'report_to_json',
    'run_audit',
    'select_links_to_check',
]
