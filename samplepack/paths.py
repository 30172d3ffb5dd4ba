from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from loguru import logger

from .errors import CategoryLayoutError

MIN_USABLE_FILES = 10
MIN_CATEGORIES = 2

_CATEGORY_NAME = re.compile(r"[0-9]+")


def _walk_files(root: Path) -> list[Path]:
    out: list[Path] = []
    seen: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        # symlinked directories may point back up the tree
        real = os.path.realpath(dirpath)
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file():
                out.append(path)
    return out


@dataclass(frozen=True)
class PathSet:
    """Regular files found under one root, in walk order."""

    root: Path
    paths: tuple[Path, ...]

    @classmethod
    def scan(cls, root: str | Path) -> "PathSet":
        root = Path(root)
        paths = tuple(_walk_files(root))
        if len(paths) < MIN_USABLE_FILES:
            logger.warning(f"Need at least {MIN_USABLE_FILES} files to train: {root}")
        return cls(root=root, paths=paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[Path]:
        return iter(self.paths)


def parse_category_name(name: str) -> int | None:
    if not _CATEGORY_NAME.fullmatch(name):
        return None
    return int(name)


@dataclass(frozen=True)
class CategorySet:
    """Category ids 0..N-1, each with the files of its directory.

    Ids double as dense label indices downstream, so the layout is checked
    once here and never remapped.
    """

    root: Path
    categories: tuple[PathSet, ...]

    @classmethod
    def scan(cls, root: str | Path) -> "CategorySet":
        root = Path(root)
        if not root.is_dir():
            raise CategoryLayoutError(f"input is not a directory: {root}")

        dirs: dict[int, Path] = {}
        for child in sorted(root.iterdir()):
            if not child.is_dir():
                logger.error(f"Not a directory: {child}")
                continue
            category = parse_category_name(child.name)
            if category is None:
                logger.error(f"Category directory not properly named: {child}")
                continue
            if category not in dirs or child.name == str(category):
                dirs[category] = child

        ids = sorted(dirs)
        if len(ids) < MIN_CATEGORIES:
            raise CategoryLayoutError(f"Need at least {MIN_CATEGORIES} categories to train (found {len(ids)}).")
        if ids[0] != 0 or ids[-1] != len(ids) - 1:
            raise CategoryLayoutError(
                f"Subdirectories must be consecutively named from 0 to N-1 (found {ids})."
            )

        categories = []
        for category in ids:
            paths = PathSet.scan(dirs[category])
            logger.info(f"Loaded {len(paths)} paths for category {category}.")
            categories.append(paths)
        return cls(root=root, categories=tuple(categories))

    @classmethod
    def single(cls, root: str | Path) -> "CategorySet":
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"input directory not found: {root}")
        return cls(root=root, categories=(PathSet.scan(root),))

    def __len__(self) -> int:
        return len(self.categories)

    def __getitem__(self, category: int) -> PathSet:
        return self.categories[category]

    def total(self) -> int:
        return sum(len(p) for p in self.categories)
