"""
Data Recovery Scan - rebuilds the local project collection on startup.

Local storage has accumulated several historical layouts plus stray test
entries. The scan reads the current keys and a fixed list of legacy keys,
keeps only records whose titles are on the known-good list, merges them by
id (first seen wins) and writes the result back to the primary and backup
keys. When nothing survives, a fixed seed collection is used instead.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from config.settings import KNOWN_PROJECT_TITLES, LEGACY_STORAGE_KEYS
from models.project import Project, project_from_record
from services.local_cache import LocalCacheStore

logger = logging.getLogger(__name__)

# Seed records carry fixed timestamps so repeated scans produce identical data
SEED_TIMESTAMP = "2024-01-01T00:00:00+00:00"

SEED_PROJECTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "title": "HYPAR PORTABLES",
        "slug": "hypar-portables",
        "subtitle": "Robotic Assembly of Lightweight Cork Modules for Adaptive Urbanism",
        "description": (
            "Hypar Portables is a robotically fabricated, modular seating system created using "
            "natural cork panels. The project explores adaptive urbanism through lightweight, "
            "sustainable materials and robotic assembly techniques."
        ),
        "content": (
            "HYPAR PORTABLES\n"
            "Robotic Assembly of Lightweight Cork Modules for Adaptive Urbanism\n\n"
            "This innovative project explores the intersection of robotic fabrication, sustainable "
            "materials, and adaptive urban design. Using natural cork panels, we created a modular "
            "seating system that can be robotically assembled and adapted to various urban contexts."
        ),
        "technologies": ["Rhino", "Grasshopper", "Python", "Robotics", "Cork Materials"],
        "tags": ["Fabrication", "Robotics"],
        "featured": True,
        "status": "published",
    },
    {
        "id": "2",
        "title": "R&E - BioFoam Thermal Performance",
        "slug": "biofoam-thermal-performance",
        "subtitle": "Investigating Porosity & Thermal Insulation in Banana-Agar Based Bioplastics",
        "description": (
            "This project investigates the thermal performance of bio-based materials by "
            "experimenting with bioplastics derived from banana and agar. The research focuses "
            "on porosity optimization for thermal insulation applications."
        ),
        "content": (
            "R&E - BIOFOAM THERMAL PERFORMANCE\n"
            "Investigating Porosity & Thermal Insulation in Banana-Agar Based Bioplastics\n\n"
            "This research project explores the thermal properties of bio-based materials, "
            "specifically focusing on bioplastics derived from banana and agar. The study "
            "investigates how porosity affects thermal insulation performance in sustainable "
            "building materials."
        ),
        "technologies": ["Material Science", "Thermal Analysis", "Bio-materials", "Research"],
        "tags": ["Research", "Materials"],
        "featured": True,
        "status": "published",
    },
    {
        "id": "3",
        "title": "Blasters Park: Multi-Functional Stadium Complex",
        "slug": "blasters-park-stadium",
        "subtitle": "Bachelor Thesis Project - 52 Acres of Integrated Design Thinking",
        "description": (
            "A 52-acre urban-scale stadium and recreational complex designed as a comprehensive "
            "thesis project. The development integrates multiple functions within a cohesive "
            "urban framework."
        ),
        "content": (
            "BLASTERS PARK: MULTI-FUNCTIONAL STADIUM COMPLEX\n"
            "Bachelor Thesis Project - 52 Acres of Integrated Design Thinking\n\n"
            "This comprehensive thesis project explores the design of a 52-acre urban-scale stadium "
            "and recreational complex. The project demonstrates integrated design thinking across "
            "multiple scales, from urban planning to architectural detail."
        ),
        "technologies": ["AutoCAD", "SketchUp", "Urban Planning", "Architectural Design"],
        "tags": ["Architecture", "Urban Design"],
        "featured": True,
        "status": "published",
    },
]


def seed_projects() -> List[Project]:
    """Fresh copies of the seed collection."""
    return [
        Project.model_validate({**record, "created_at": SEED_TIMESTAMP, "updated_at": SEED_TIMESTAMP})
        for record in SEED_PROJECTS
    ]


def _looks_like_projects(data: Any) -> bool:
    return isinstance(data, list) and any(
        isinstance(item, dict) and item.get("title") for item in data
    )


class DataRecoveryScan:
    """
    Consolidates every local source of project records into one collection.

    Safe to run repeatedly: with unchanged storage each run returns the same
    records in the same order.
    """

    def __init__(
        self,
        cache: LocalCacheStore,
        legacy_keys: Optional[Iterable[str]] = None,
        allowed_titles: Optional[Iterable[str]] = None,
        filter_enabled: bool = True,
    ):
        self.cache = cache
        self.legacy_keys = list(LEGACY_STORAGE_KEYS if legacy_keys is None else legacy_keys)
        self.allowed_titles = set(KNOWN_PROJECT_TITLES if allowed_titles is None else allowed_titles)
        self.filter_enabled = filter_enabled

    def source_keys(self) -> List[str]:
        """Keys scanned, in priority order: primary, backup, then legacy keys."""
        keys = [self.cache.primary_key, self.cache.backup_key]
        for key in self.legacy_keys:
            if key not in keys:
                keys.append(key)
        return keys

    def _is_allowed(self, title: str) -> bool:
        return not self.filter_enabled or title.strip() in self.allowed_titles

    async def run(self) -> List[Project]:
        """Scan, merge, fall back to seed data if needed, persist and return."""
        recovered: Dict[str, Project] = {}
        dropped_titles = set()

        for key in self.source_keys():
            data = await self.cache.read_json(key)
            if not _looks_like_projects(data):
                continue

            found = 0
            for item in data:
                if not isinstance(item, dict) or not isinstance(item.get("title"), str):
                    continue
                if not self._is_allowed(item["title"]):
                    dropped_titles.add(item["title"])
                    continue
                project = project_from_record(item)
                if project is None or project.id in recovered:
                    continue
                recovered[project.id] = project
                found += 1
            logger.info(f"DataRecovery: {found} new projects recovered from '{key}'")

        if dropped_titles:
            logger.warning(
                f"DataRecovery: ignored records with unknown titles: {', '.join(sorted(dropped_titles))}"
            )

        projects = list(recovered.values())
        if not projects:
            logger.info("DataRecovery: nothing recovered, using seed projects")
            projects = seed_projects()

        await self._persist(projects)
        logger.info(f"DataRecovery: recovery complete, {len(projects)} projects")
        return projects

    async def _persist(self, projects: List[Project]) -> None:
        for label, result in (
            ("primary", await self.cache.save(projects)),
            ("backup", await self.cache.save_backup(projects)),
        ):
            if not result.ok:
                logger.error(f"DataRecovery: could not save recovered projects to {label} key: {result.error}")
