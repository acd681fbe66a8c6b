#!/usr/bin/env python3
"""
Shared fixtures for atomcache tests

Structures are built in memory with Bio.PDB classes; nothing touches the
network.
"""
import threading
from typing import Dict, List, Optional

import numpy as np
import pytest
from Bio.PDB.Atom import Atom
from Bio.PDB.Chain import Chain
from Bio.PDB.Model import Model
from Bio.PDB.Residue import Residue
from Bio.PDB.Structure import Structure

from atomcache.cache.atom_cache import AtomCache
from atomcache.core.interfaces import StructureReader, ScopDatabase, CathDatabase
from atomcache.models.domain import DomainDefinition, CathDomain, CathSegment


def make_residue(hetflag: str, seq: int, resname: str, icode: str = " ") -> Residue:
    residue = Residue((hetflag, seq, icode), resname, "    ")
    atom_name = "CA" if hetflag == " " else resname[:2].strip() or "X"
    coord = np.array([float(seq), float(len(resname)), 0.0], dtype="f")
    residue.add(Atom(atom_name, coord, 20.0, 1.0, " ", f" {atom_name:<3}", seq, element="C"))
    return residue


def build_structure(structure_id: str = "1abc", models: int = 1) -> Structure:
    """Two-chain test structure

    Chain A: ALA 1-5, 5A, 6-10, then (after the polymer) ZN 3, HEM 50, HOH 100
    Chain B: GLY 1-8, then SO4 20
    """
    structure = Structure(structure_id)
    structure.header = {"idcode": structure_id.upper(), "name": "test structure"}
    for model_id in range(models):
        model = Model(model_id)
        structure.add(model)

        chain_a = Chain("A")
        model.add(chain_a)
        for seq in range(1, 6):
            chain_a.add(make_residue(" ", seq, "ALA"))
        chain_a.add(make_residue(" ", 5, "ALA", "A"))
        for seq in range(6, 11):
            chain_a.add(make_residue(" ", seq, "ALA"))
        chain_a.add(make_residue("H_ZN", 3, "ZN"))
        chain_a.add(make_residue("H_HEM", 50, "HEM"))
        chain_a.add(make_residue("W", 100, "HOH"))

        if model_id == 0:
            chain_b = Chain("B")
            model.add(chain_b)
            for seq in range(1, 9):
                chain_b.add(make_residue(" ", seq, "GLY"))
            chain_b.add(make_residue("H_SO4", 20, "SO4"))
    return structure


def atom_line(serial, name, resname, chain, seq, x, element="C", record="ATOM"):
    """One fixed-column PDB coordinate record"""
    return (f"{record:<6}{serial:5d} {name:<4} {resname:>3} {chain}{seq:4d}    "
            f"{x:8.3f}{0.0:8.3f}{0.0:8.3f}{1.0:6.2f}{20.0:6.2f}          {element:>2}")


PDB_TEXT = "\n".join([
    atom_line(1, " CA", "ALA", "A", 1, 1.0),
    atom_line(2, " CA", "GLY", "A", 2, 4.8),
    "TER       3      GLY A   2",
    atom_line(4, "ZN", "ZN", "A", 101, 9.0, element="ZN", record="HETATM"),
    "END",
]) + "\n"


class FakeReader(StructureReader):
    """In-memory structure reader recording every load"""

    def __init__(self, structures: Optional[Dict[str, Structure]] = None,
                 gate: Optional[threading.Event] = None):
        self.structures = structures if structures is not None else {"1abc": build_structure("1abc")}
        self.gate = gate
        self.calls: List[str] = []
        self.assembly_calls: List[tuple] = []
        self.url_calls: List[str] = []
        self.started = threading.Event()
        self.flushed = False
        self._lock = threading.Lock()

    def get_structure_by_id(self, pdb_id: str) -> Structure:
        with self._lock:
            self.calls.append(pdb_id)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        if pdb_id not in self.structures:
            raise IOError(f"No such entry {pdb_id}")
        return self.structures[pdb_id]

    def get_structure_from_url(self, url: str) -> Structure:
        self.url_calls.append(url)
        return build_structure("url1")

    def get_biological_assembly(self, pdb_id: str, assembly_id: int = 1) -> Structure:
        self.assembly_calls.append((pdb_id, assembly_id))
        return build_structure(pdb_id)

    def flush_cache(self) -> None:
        self.flushed = True


class FakeScopDatabase(ScopDatabase):
    """SCOP database over a fixed list of domains"""

    def __init__(self, domains: List[DomainDefinition], descriptions: Optional[Dict[int, str]] = None):
        self.domains = domains
        self.descriptions = descriptions or {}
        self.flushed = False

    def get_domain_by_scop_id(self, scop_id: str) -> Optional[DomainDefinition]:
        for domain in self.domains:
            if domain.domain_id == scop_id:
                return domain
        return None

    def get_domains_for_pdb(self, pdb_id: str) -> List[DomainDefinition]:
        return [d for d in self.domains if d.pdb_id == pdb_id.lower()]

    def get_description_by_sunid(self, sunid: int) -> Optional[str]:
        return self.descriptions.get(sunid)

    def flush_cache(self) -> None:
        self.flushed = True


class FakeCathDatabase(CathDatabase):

    def __init__(self, domains: List[CathDomain]):
        self.domains = {d.domain_id: d for d in domains}

    def get_domain_by_cath_id(self, cath_id: str) -> Optional[CathDomain]:
        return self.domains.get(cath_id)


@pytest.fixture
def structure():
    return build_structure("1abc")


@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def scop_domains():
    return [
        DomainDefinition("d1abca1", "1abc", ("A:1-5",), "a.1.1.1", superfamily_id=46458, sunid=1001),
        DomainDefinition("d1abca2", "1abc", ("A:6-10",), "a.1.1.2", superfamily_id=46458, sunid=1002),
        DomainDefinition("d1abcb_", "1abc", ("B:",), "b.2.1.1", superfamily_id=50000, sunid=1003),
    ]


@pytest.fixture
def scop_database(scop_domains):
    return FakeScopDatabase(scop_domains, {46458: "Globin-like"})


@pytest.fixture
def cath_database():
    return FakeCathDatabase([
        CathDomain("1abcA01", "1abc", "A", (CathSegment("1", "3"), CathSegment("7", "9")),
                   "1.10.490.10", "1abcA01"),
    ])


@pytest.fixture
def cache(tmp_path, reader, scop_database, cath_database):
    return AtomCache(path=str(tmp_path), reader=reader, scop_database=scop_database,
                     cath_database=cath_database)
