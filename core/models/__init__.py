"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/models/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Package initializer for core data models. Exports the record,
                classification and taxonomy node entities for easy access.
------------------------------------------------------------------------------
"""

from .record import (
    ClassificationRecord,
    ClassificationResponse,
    DdcClassification,
    DdcInfo,
    OntologyReport,
)
from .node import ROOT_ID, ROOT_NAME, TaxonomyNode, natural_sort_key
