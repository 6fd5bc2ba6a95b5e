#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.util.scriptlib.argparsers`"""
import argparse
import os
import shlex
import unittest
import pytest

from translatome.quant.config import PipelineConfig
from translatome.util.scriptlib.argparsers import BaseParser, ConfigParser, MetadataParser,\
                                                 CountTableParser, MatrixParser,\
                                                 PrefixNamespaceWrapper,\
                                                 parse_key_value_pairs, read_lengths
from translatome.util.io.openers import write_matrix
from translatome.util.services.exceptions import DuplicateFeatureKeys
from translatome.test.common import make_matrix, write_text, featurecounts_text

ROWS = [("ENSG01",1500,[10,0]),
        ("ENSG02",900,[5,7]),
       ]


def _parse(parsers,argstr):
    parser = argparse.ArgumentParser(parents=[X.get_parser() for X in parsers])
    return parser.parse_args(shlex.split(argstr))


@pytest.mark.unit
def test_parse_key_value_pairs():
    assert parse_key_value_pairs(["subgroup=WNT"," patient code = sample_id","a=b=c"]) ==\
           { "subgroup" : "WNT", "patient code" : "sample_id", "a" : "b=c" }
    assert parse_key_value_pairs([]) == {}
    with pytest.raises(ValueError):
        parse_key_value_pairs(["subgroup"])

@pytest.mark.unit
def test_prefix_namespace_wrapper():
    ns = argparse.Namespace(ribo_counts="a.txt",rna_counts="b.txt")
    assert PrefixNamespaceWrapper(ns,"ribo_").counts == "a.txt"
    assert PrefixNamespaceWrapper(ns,"rna_").counts == "b.txt"


@pytest.mark.unit
class TestBaseParser(unittest.TestCase):

    def test_force(self):
        bp = BaseParser()
        self.assertFalse(_parse([bp],"").force)
        self.assertTrue(_parse([bp],"--force").force)

    def test_warning_levels(self):
        bp = BaseParser()
        tests = [("","onceperfamily"),
                 ("-q","ignore"),
                 ("-v","always"),
                 ("-vv","error"),
                 ("-vvv","error"),
                ]
        for argstr, expected in tests:
            self.assertEqual(bp.get_base_ops_from_args(_parse([bp],argstr)),expected,argstr)


@pytest.mark.unit
class TestConfigParser(unittest.TestCase):

    def test_defaults_follow_granularity(self):
        cp = ConfigParser()
        self.assertEqual(cp.get_config_from_args(_parse([cp],"")),PipelineConfig.for_granularity("gene"))
        self.assertEqual(cp.get_config_from_args(_parse([cp],"--granularity orf")),PipelineConfig.for_granularity("orf"))

    def test_overrides(self):
        cp = ConfigParser()
        args = _parse([cp],"--granularity orf --pseudocount 0.5 --centering mean-sd --min_samples 2 "+\
                           "--ambiguity_policy first --allow_shared_samples --canonical_suffix _cds")
        config = cp.get_config_from_args(args)
        self.assertEqual(config.granularity,"orf")
        self.assertEqual(config.min_mean_count,4)
        self.assertEqual(config.pseudocount,0.5)
        self.assertEqual(config.centering,"mean-sd")
        self.assertEqual(config.min_samples,2)
        self.assertEqual(config.ambiguity_policy,"first")
        self.assertTrue(config.allow_shared_samples)
        self.assertEqual(config.canonical_suffix,"_cds")

    def test_disabled_granularity(self):
        cp = ConfigParser(disabled=["granularity"],granularity="orf")
        args = _parse([cp],"")
        self.assertFalse(hasattr(args,"granularity"))
        self.assertEqual(cp.get_config_from_args(args).granularity,"orf")

    def test_disabled_options_absent(self):
        cp = ConfigParser(disabled=["min_samples","ambiguity_policy"])
        with self.assertRaises(SystemExit):
            _parse([cp],"--min_samples 3")

    def test_invalid_choice(self):
        cp = ConfigParser()
        with self.assertRaises(SystemExit):
            _parse([cp],"--centering zscore")


@pytest.mark.unit
class TestFileParsers(unittest.TestCase):

    @pytest.fixture(autouse=True)
    def _tmp_path(self,tmp_path):
        self.tmp_path = str(tmp_path)

    def test_metadata_parser(self):
        text = "Cohort title\nPatient code,RNA-seq files,Ribo-seq files\nMB01,a.fq,b.fq\nMB02,c.fq,\nMB03,e.fq,f.fq\n"
        fn = write_text(self.tmp_path,"metadata.csv",text)
        mp = MetadataParser()
        args = _parse([mp],"--metadata %s --metadata_skiprows 1 " % fn +\
                           "--metadata_columns 'patient code=sample_id' 'RNA-seq files=rnaseq_files' 'Ribo-seq files=riboseq_files' "+\
                           "--exclude_samples MB03 --require_paired")
        with pytest.warns(Warning):
            metadata = mp.get_metadata_from_args(args)
        self.assertEqual(list(metadata["sample_id"]),["MB01"])

    def test_featurecounts_tables_merged(self):
        fn1 = write_text(self.tmp_path,"a.txt",featurecounts_text(["MB01","MB02"],ROWS))
        fn2 = write_text(self.tmp_path,"b.txt",featurecounts_text(["MB03","MB04"],ROWS[::-1]))
        cp = CountTableParser()
        counts, lengths = cp.get_counts_from_args(_parse([cp],"--counts %s %s" % (fn1,fn2)))
        self.assertEqual(list(counts.columns),["MB01","MB02","MB03","MB04"])
        self.assertEqual(list(counts.index),["ENSG01","ENSG02"])
        self.assertEqual(list(counts.loc["ENSG01"]),[10,0,10,0])
        self.assertEqual(list(lengths),[1500,900])

    def test_featurecounts_repeated_samples(self):
        fn1 = write_text(self.tmp_path,"a.txt",featurecounts_text(["MB01","MB02"],ROWS))
        fn2 = write_text(self.tmp_path,"b.txt",featurecounts_text(["MB02"],[(X[0],X[1],X[2][:1]) for X in ROWS]))
        cp = CountTableParser()
        with self.assertRaises(DuplicateFeatureKeys):
            cp.get_counts_from_args(_parse([cp],"--counts %s %s" % (fn1,fn2)))

    def test_psites_need_reference(self):
        cp = CountTableParser()
        args = _parse([cp],"--format psites --counts MB01_intersect.bed")
        with self.assertRaises(ValueError):
            cp.get_counts_from_args(args)

    def test_optional_counts(self):
        cp = CountTableParser(prefix="orf_",required=False)
        args = _parse([cp],"")
        self.assertFalse(cp.is_given(args))

    def test_matrix_parser_prefixes(self):
        ribo = MatrixParser(groupname="ribo_options",prefix="ribo_",label="ribosome occupancy count")
        rna  = MatrixParser(groupname="rna_options",prefix="rna_",label="transcript count")

        ribo_fn = write_text(self.tmp_path,"ribo.txt","feature_id\tS1\nG1\t4\n")
        rna_fn  = write_text(self.tmp_path,"rna.txt","feature_id\tS1\nG1\t8\n")
        len_fn  = write_text(self.tmp_path,"lengths.txt","## header\nfeature_id\tlength\nG1\t300\n")

        args = _parse([ribo,rna],"--ribo_counts %s --rna_counts %s --rna_lengths %s" % (ribo_fn,rna_fn,len_fn))
        self.assertEqual(ribo.get_matrix_from_args(args).loc["G1","S1"],4)
        self.assertEqual(rna.get_matrix_from_args(args).loc["G1","S1"],8)
        self.assertIsNone(ribo.get_lengths_from_args(args))
        self.assertEqual(rna.get_lengths_from_args(args).to_dict(),{ "G1" : 300 })

    def test_read_lengths_shape(self):
        fn = write_text(self.tmp_path,"m.txt","feature_id\tS1\tS2\nG1\t4\t5\n")
        with self.assertRaises(ValueError):
            read_lengths(fn)

    def test_read_lengths_from_written_series(self):
        fn = os.path.join(self.tmp_path,"lengths.txt")
        write_matrix(make_matrix({ "G1" : [100], "G2" : [200] },["length"]),fn,argparse.Namespace(x=1))
        self.assertEqual(list(read_lengths(fn)),[100,200])
