#!/usr/bin/env python3
"""
Tests for structure name classification
"""
import pytest

from atomcache.exceptions import TooShortError, MalformedNameError
from atomcache.models.reference import (
    ReferenceKind, PlainAccession, AccessionChain, AccessionChainIndex,
    AccessionRange, ClassificationDomain, TopologyDomain, BiologicalAssembly,
    PdpDomain, StructureUrl, UnresolvedName,
)
from atomcache.naming.classifier import NameClassifier, NameRule, classify


class TestAccessionNames:
    """Plain accessions, chains and chain indices"""

    @pytest.mark.parametrize("name", ["1tim", "4HHB", "1a0b", "9XYZ", "2bq6"])
    def test_four_characters_is_plain_accession(self, name):
        reference = classify(name)
        assert isinstance(reference, PlainAccession)
        assert reference.pdb_id == name
        assert reference.name == name

    @pytest.mark.parametrize("name", ["", "a", "1a", "1ab"])
    def test_too_short_names_raise(self, name):
        with pytest.raises(TooShortError):
            classify(name)

    def test_too_short_is_a_value_error(self):
        with pytest.raises(ValueError):
            classify("abc")

    @pytest.mark.parametrize("chain", ["A", "B", "z", "1"])
    def test_chain_by_id(self, chain):
        reference = classify(f"4hhb.{chain}")
        assert isinstance(reference, AccessionChain)
        assert reference.pdb_id == "4hhb"
        assert reference.chain_id == chain

    def test_chain_by_index(self):
        reference = classify("4hhb:2")
        assert isinstance(reference, AccessionChainIndex)
        assert reference.chain_index == 2

    def test_chain_index_must_be_a_digit(self):
        with pytest.raises(MalformedNameError):
            classify("4hhb:x")

    @pytest.mark.parametrize("name", ["4hhb:\u00b2", "4hhb:\u0663"])
    def test_chain_index_must_be_an_ascii_digit(self, name):
        with pytest.raises(MalformedNameError):
            classify(name)

    def test_load_key_is_case_insensitive(self):
        assert classify("4HHB").load_key == classify("4hhb").load_key == "4hhb"
        assert classify("4HHB.A").load_key == "4hhb"

    def test_unknown_separator_is_unresolved(self):
        assert isinstance(classify("4hhbxA"), UnresolvedName)


class TestRangeNames:

    def test_single_range(self):
        reference = classify("4GCR.A_1-83")
        assert isinstance(reference, AccessionRange)
        assert reference.pdb_id == "4GCR"
        assert reference.range_expression == "A_1-83"

    def test_multiple_ranges(self):
        reference = classify("3AA0.A_1-10,B")
        assert isinstance(reference, AccessionRange)
        assert reference.range_expression == "A_1-10,B"

    def test_scop_style_separator(self):
        reference = classify("1abc.A:-5-10B")
        assert isinstance(reference, AccessionRange)
        assert reference.range_expression == "A:-5-10B"

    def test_chain_list_without_range_separator_is_unresolved(self):
        assert isinstance(classify("3AA0.A,B"), UnresolvedName)


class TestDomainNames:

    def test_scop_domain(self):
        reference = classify("d2bq6a1")
        assert isinstance(reference, ClassificationDomain)
        assert reference.pdb_id == "2bq6"
        assert reference.chain_token == "a"
        assert reference.domain_token == "1"
        assert reference.scop_id == "d2bq6a1"

    def test_scop_domain_with_wildcards(self):
        reference = classify("d1abc__")
        assert isinstance(reference, ClassificationDomain)
        assert reference.chain_token == "_"
        assert reference.domain_token == "_"

    def test_cath_domain(self):
        reference = classify("1cukA01")
        assert isinstance(reference, TopologyDomain)
        assert reference.pdb_id == "1cuk"
        assert reference.chain_id == "A"
        assert reference.domain_number == "01"
        assert reference.cath_id == "1cukA01"

    def test_pdp_domain(self):
        reference = classify("PDP:1A02Aa")
        assert isinstance(reference, PdpDomain)
        assert reference.pdb_id == "1A02"


class TestBiologicalAssemblyNames:

    def test_default_assembly_is_one(self):
        reference = classify("BIO:1FAH")
        assert isinstance(reference, BiologicalAssembly)
        assert reference.pdb_id == "1FAH"
        assert reference.assembly_id == 1

    def test_explicit_assembly(self):
        assert classify("BIO:1FAH:2").assembly_id == 2

    def test_assembly_zero_is_accepted(self):
        assert classify("BIO:1fah:0").assembly_id == 0

    def test_non_numeric_assembly_raises(self):
        with pytest.raises(MalformedNameError):
            classify("BIO:1fah:x")

    @pytest.mark.parametrize("name", ["BIO:1fah:\u00b2", "BIO:1fah:1\u00b9"])
    def test_superscript_assembly_raises(self, name):
        with pytest.raises(MalformedNameError):
            classify(name)


class TestUrlNames:

    def test_file_url_with_chain(self):
        reference = classify("file:///data/pdb/1abc.cif?chainId=B")
        assert isinstance(reference, StructureUrl)
        assert reference.chain_id == "B"
        assert reference.url == "file:///data/pdb/1abc.cif"

    def test_http_url_keeps_query(self):
        reference = classify("https://example.org/get?chainId=A")
        assert isinstance(reference, StructureUrl)
        assert reference.chain_id == "A"
        assert reference.url == "https://example.org/get?chainId=A"

    def test_url_without_chain(self):
        reference = classify("http://example.org/1abc.pdb")
        assert isinstance(reference, StructureUrl)
        assert reference.chain_id is None

    def test_malformed_url_is_unresolved(self):
        reference = classify("http://[::1/broken")
        assert isinstance(reference, UnresolvedName)
        assert "malformed URL" in reference.reason


class TestRuleTable:

    def test_first_matching_rule_wins(self):
        classifier = NameClassifier()
        assert classifier.matching_rule("1abcA01").label == "cath"
        assert classifier.matching_rule("d2bq6a1").label == "scop"
        assert classifier.matching_rule("4hhb").label == "pdb"

    def test_no_rule_gives_unresolved(self):
        reference = NameClassifier(rules=[]).classify("4hhb")
        assert isinstance(reference, UnresolvedName)
        assert reference.kind is ReferenceKind.UNRESOLVED

    def test_custom_rules(self):
        rule = NameRule("everything", lambda n: True, lambda n: PlainAccession(name=n, accession=n[:4]))
        reference = NameClassifier(rules=[rule]).classify("anything")
        assert isinstance(reference, PlainAccession)
        assert reference.pdb_id == "anyt"

    def test_classification_is_deterministic(self):
        assert classify("4hhb.A") == classify("4hhb.A")
