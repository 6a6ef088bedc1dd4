"""Partition of atoms into rigid molecular units.

Whole-molecule wrapping needs to know which atoms belong together. The
partition is stored arena-style: one flat array of atom indices ordered by
molecule, an offsets array delimiting molecules, and an atom-to-molecule
lookup. Molecules are referenced by index, never copied, so per-frame work
is a handful of vectorized operations over the whole system.

Layout
------
For molecules ``[[0, 1, 2], [3], [4, 5]]``::

    atom_indices  = [0, 1, 2, 3, 4, 5]
    offsets       = [0, 3, 4, 6]
    molecule_ids  = [0, 0, 0, 1, 2, 2]   (indexed by atom)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np
from numpy.typing import ArrayLike, NDArray

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MoleculePartition:
    """Disjoint, non-empty groups of atoms covering ``[0, n_atoms)``.

    Attributes
    ----------
    atom_indices : NDArray[np.int64]
        Atom indices ordered molecule by molecule, shape (n_atoms,).
    offsets : NDArray[np.int64]
        Start of each molecule in ``atom_indices``, shape (n_molecules + 1,).
    molecule_ids : NDArray[np.int64]
        Molecule index of every atom, shape (n_atoms,).
    """

    atom_indices: NDArray[np.int64]
    offsets: NDArray[np.int64]
    molecule_ids: NDArray[np.int64]

    @classmethod
    def from_groups(cls, groups: Iterable[ArrayLike], n_atoms: int) -> "MoleculePartition":
        """Build a partition from per-molecule atom index lists.

        Parameters
        ----------
        groups : iterable of array-like
            Atom indices of each molecule (e.g. ``[f.ix for f in u.atoms.fragments]``).
        n_atoms : int
            Total number of atoms in the system.

        Raises
        ------
        ValueError
            If a group is empty, groups overlap, or some atom is not covered.
        """
        arrays = [np.asarray(g, dtype=np.int64).ravel() for g in groups]

        if any(len(a) == 0 for a in arrays):
            raise ValueError("Molecules must contain at least one atom")

        sizes = np.array([len(a) for a in arrays], dtype=np.int64)
        offsets = np.concatenate([[0], np.cumsum(sizes)]).astype(np.int64)
        atom_indices = np.concatenate(arrays) if arrays else np.empty(0, dtype=np.int64)

        if len(atom_indices) != n_atoms:
            raise ValueError(
                f"Molecules cover {len(atom_indices)} atom slots but the system has {n_atoms} atoms"
            )
        if n_atoms and (atom_indices.min() < 0 or atom_indices.max() >= n_atoms):
            raise ValueError(f"Molecule atom indices must lie in [0, {n_atoms})")

        counts = np.bincount(atom_indices, minlength=n_atoms)
        if np.any(counts != 1):
            duplicated = np.flatnonzero(counts > 1)
            missing = np.flatnonzero(counts == 0)
            raise ValueError(
                "Molecules do not partition the system: "
                f"{len(duplicated)} atom(s) in several molecules, {len(missing)} atom(s) in none"
            )

        molecule_ids = np.empty(n_atoms, dtype=np.int64)
        molecule_ids[atom_indices] = np.repeat(np.arange(len(arrays), dtype=np.int64), sizes)

        for arr in (atom_indices, offsets, molecule_ids):
            arr.setflags(write=False)

        LOGGER.debug(f"Built partition of {n_atoms} atoms into {len(arrays)} molecules")
        return cls(atom_indices=atom_indices, offsets=offsets, molecule_ids=molecule_ids)

    @classmethod
    def from_labels(cls, labels: ArrayLike) -> "MoleculePartition":
        """Build a partition from a per-atom molecule label array.

        Atoms sharing a label form one molecule; molecules are ordered by
        first appearance.
        """
        labels = np.asarray(labels).ravel()
        _, first, inverse = np.unique(labels, return_index=True, return_inverse=True)
        order = np.argsort(first)
        rank = np.empty_like(order)
        rank[order] = np.arange(len(order))
        ids = rank[inverse]
        groups = [np.flatnonzero(ids == m) for m in range(len(order))]
        return cls.from_groups(groups, len(labels))

    @property
    def n_molecules(self) -> int:
        """Number of molecules."""
        return len(self.offsets) - 1

    @property
    def n_atoms(self) -> int:
        """Number of atoms covered."""
        return len(self.atom_indices)

    @property
    def sizes(self) -> NDArray[np.int64]:
        """Number of atoms in each molecule."""
        return np.diff(self.offsets)

    def molecule(self, index: int) -> NDArray[np.int64]:
        """Atom indices of one molecule (a view into the arena)."""
        return self.atom_indices[self.offsets[index] : self.offsets[index + 1]]

    def __iter__(self) -> Iterator[NDArray[np.int64]]:
        for m in range(self.n_molecules):
            yield self.molecule(m)

    def __len__(self) -> int:
        return self.n_molecules

    def centers(self, coordinates: NDArray[np.floating]) -> NDArray[np.float64]:
        """Geometric center of each molecule along the given coordinate columns.

        Parameters
        ----------
        coordinates : NDArray
            Per-atom coordinates, shape (n_atoms,) or (n_atoms, k).

        Returns
        -------
        NDArray[np.float64]
            Shape (n_molecules,) or (n_molecules, k).

        Notes
        -----
        Uses np.bincount for O(n_atoms) complexity.
        """
        coords = np.asarray(coordinates, dtype=np.float64)
        sizes = self.sizes.astype(np.float64)

        if coords.ndim == 1:
            return np.bincount(self.molecule_ids, weights=coords, minlength=self.n_molecules) / sizes

        columns = [
            np.bincount(self.molecule_ids, weights=coords[:, k], minlength=self.n_molecules)
            for k in range(coords.shape[1])
        ]
        return np.column_stack(columns) / sizes[:, np.newaxis]
