from .amazon import AmazonExtractor
from .aym import AymExtractor
from .base import Document, ProductExtractor, assemble
from .charles_tyrwhitt import CharlesTyrwhittExtractor
from .coachoutlet import CoachOutletExtractor
from .etsy import EtsyExtractor
from .farfetch import FarfetchExtractor
from .generic import GenericExtractor
from .hm import HmExtractor
from .jcrew import JCrewExtractor
from .maxmara import MaxMaraExtractor
from .mytheresa import MytheresaExtractor
from .ralph_lauren import RalphLaurenExtractor
from .the_fold import TheFoldExtractor
from .theoutnet import TheOutnetExtractor
from .therealreal import TheRealRealExtractor
from .yoox import YooxExtractor
from .zara import ZaraExtractor

__all__ = [
    "AmazonExtractor",
    "AymExtractor",
    "CharlesTyrwhittExtractor",
    "CoachOutletExtractor",
    "Document",
    "EtsyExtractor",
    "FarfetchExtractor",
    "GenericExtractor",
    "HmExtractor",
    "JCrewExtractor",
    "MaxMaraExtractor",
    "MytheresaExtractor",
    "ProductExtractor",
    "RalphLaurenExtractor",
    "TheFoldExtractor",
    "TheOutnetExtractor",
    "TheRealRealExtractor",
    "YooxExtractor",
    "ZaraExtractor",
    "assemble",
]
