#!/usr/bin/env python3
"""
Tests for sub-structure extraction primitives
"""
import pytest
from Bio.PDB.Structure import Structure

from atomcache.exceptions import StructureError, MalformedRangeError
from atomcache.structure.tools import (
    is_ligand, is_water, filter_ligands, first_model, reduce_to_first_model,
    reduce_to_chain, reduce_to_chain_index, get_sub_ranges, get_ca_atoms,
    get_range_expression, set_structure_name, copy_structure, ResiduePositionMap,
)
from atomcache.utils.range_utils import ResidueNumber, ResidueRange
from atomcache.tests.conftest import build_structure, make_residue


def residue_numbers(chain):
    return [f"{r.id[1]}{r.id[2].strip()}" for r in chain]


class TestLigandDetection:

    def test_ion_is_ligand(self):
        assert is_ligand(make_residue("H_ZN", 3, "ZN"))

    def test_water_is_not_ligand(self):
        water = make_residue("W", 100, "HOH")
        assert not is_ligand(water)
        assert is_water(water)

    def test_amino_acid_is_not_ligand(self):
        assert not is_ligand(make_residue(" ", 1, "ALA"))

    def test_modified_amino_acid_is_not_ligand(self):
        assert not is_ligand(make_residue("H_MSE", 12, "MSE"))

    def test_filter_ligands(self, structure):
        ligands = filter_ligands(structure[0]["A"])
        assert [r.get_resname() for r in ligands] == ["ZN", "HEM"]


class TestReductions:

    def test_first_model_of_empty_structure(self):
        with pytest.raises(StructureError):
            first_model(Structure("empty"))

    def test_reduce_to_first_model(self):
        structure = build_structure("1abc", models=3)
        reduced = reduce_to_first_model(structure)
        assert len(reduced) == 1
        assert [c.id for c in reduced[0]] == ["A", "B"]
        assert len(structure) == 3

    def test_reduce_to_chain(self, structure):
        reduced = reduce_to_chain(structure, "B")
        assert [c.id for c in reduced[0]] == ["B"]
        assert len(reduced[0]["B"]) == 9

    def test_reduce_to_missing_chain(self, structure):
        with pytest.raises(StructureError) as exc_info:
            reduce_to_chain(structure, "C")
        assert exc_info.value.details["chain_id"] == "C"

    def test_reduce_to_chain_index(self, structure):
        reduced = reduce_to_chain_index(structure, 1)
        assert [c.id for c in reduced[0]] == ["B"]

    @pytest.mark.parametrize("index", [2, -1])
    def test_chain_index_out_of_range(self, structure, index):
        with pytest.raises(StructureError):
            reduce_to_chain_index(structure, index)


class TestSubRanges:

    def test_single_range(self, structure):
        sub = get_sub_ranges(structure, "A_1-5")
        assert residue_numbers(sub[0]["A"]) == ["1", "2", "3", "4", "5"]
        assert "B" not in sub[0]

    def test_range_spanning_insertion_code(self, structure):
        sub = get_sub_ranges(structure, "A_5-6")
        assert residue_numbers(sub[0]["A"]) == ["5", "5A", "6"]

    def test_range_ending_on_insertion_code(self, structure):
        sub = get_sub_ranges(structure, "A:4-5A")
        assert residue_numbers(sub[0]["A"]) == ["4", "5", "5A"]

    def test_segment_and_whole_chain(self, structure):
        sub = get_sub_ranges(structure, "A_1-3,B")
        assert residue_numbers(sub[0]["A"]) == ["1", "2", "3"]
        assert len(sub[0]["B"]) == 9

    def test_overlapping_ranges_do_not_duplicate(self, structure):
        sub = get_sub_ranges(structure, "A_1-3,A_2-4")
        assert residue_numbers(sub[0]["A"]) == ["1", "2", "3", "4"]

    def test_whole_structure(self, structure):
        sub = get_sub_ranges(structure, "-")
        assert [c.id for c in sub[0]] == ["A", "B"]

    @pytest.mark.parametrize("expression", ["C", "A_1-99", "A_5-1", "A_1"])
    def test_invalid_ranges(self, structure, expression):
        with pytest.raises(MalformedRangeError):
            get_sub_ranges(structure, expression)

    def test_sub_structure_does_not_share_residues(self, structure):
        sub = get_sub_ranges(structure, "A_1-2")
        sub_atom = sub[0]["A"][(" ", 1, " ")]["CA"]
        original_atom = structure[0]["A"][(" ", 1, " ")]["CA"]
        assert sub_atom is not original_atom
        sub_atom.coord[0] = 999.0
        assert original_atom.coord[0] == 1.0
        assert original_atom.get_parent().get_parent() is structure[0]["A"]

    def test_header_is_copied(self, structure):
        sub = get_sub_ranges(structure, "A_1-2")
        sub.header["name"] = "changed"
        assert structure.header["name"] == "test structure"


class TestDescriptions:

    def test_range_expression_of_full_structure(self, structure):
        assert get_range_expression(structure) == "A_1-10,B_1-8"

    def test_range_expression_round_trip(self, structure):
        sub = get_sub_ranges(structure, "A_2-4,B_3-6")
        assert get_range_expression(sub) == "A_2-4,B_3-6"

    def test_ca_atoms(self, structure):
        atoms = get_ca_atoms(structure)
        assert len(atoms) == 19
        assert all(atom.get_id() == "CA" for atom in atoms)

    def test_set_structure_name(self, structure):
        set_structure_name(structure, "d1abca1", "1abc")
        assert structure.id == "d1abca1"
        assert structure.header["idcode"] == "1abc"

    def test_copy_structure(self, structure):
        copied = copy_structure(structure)
        assert copied is not structure
        assert copied.header == structure.header
        assert copied.header is not structure.header
        assert len(copied[0]["A"]) == len(structure[0]["A"])


class TestResiduePositionMap:

    def test_covers_every_residue(self, structure):
        assert len(ResiduePositionMap(structure)) == 23

    def test_ligand_inside_range(self, structure):
        positions = ResiduePositionMap(structure)
        zinc = structure[0]["A"][("H_ZN", 3, " ")]
        heme = structure[0]["A"][("H_HEM", 50, " ")]
        domain = ResidueRange("A", ResidueNumber(1), ResidueNumber(5))
        assert positions.contains(domain, "A", zinc)
        assert not positions.contains(domain, "A", heme)

    def test_other_chain(self, structure):
        positions = ResiduePositionMap(structure)
        zinc = structure[0]["A"][("H_ZN", 3, " ")]
        assert not positions.contains(ResidueRange("B", ResidueNumber(1), ResidueNumber(8)), "A", zinc)

    def test_whole_chain_and_structure(self, structure):
        positions = ResiduePositionMap(structure)
        heme = structure[0]["A"][("H_HEM", 50, " ")]
        assert positions.contains(ResidueRange("A"), "A", heme)
        assert positions.contains(ResidueRange(None), "A", heme)

    def test_unknown_bound(self, structure):
        positions = ResiduePositionMap(structure)
        zinc = structure[0]["A"][("H_ZN", 3, " ")]
        with pytest.raises(MalformedRangeError):
            positions.contains(ResidueRange("A", ResidueNumber(1), ResidueNumber(77)), "A", zinc)
