#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.readers.psites`"""
import os
import unittest
import pytest

from translatome.readers.psites import read_reference_psites, read_intersect_bed,\
                                       read_psite_counts, candidate_from_filename
from translatome.util.services.exceptions import MalformedFileError
from translatome.test.common import write_text

REFERENCE = """track name=reference_psites
# one row per P-site position
chr1\t100\t101\tORF1\t0\t+
chr1\t101\t102\tORF1\t0\t+
chr1\t102\t103\tORF1\t0\t+
chr2\t10\t11\tORF2\t0\t-

chr2\t11\t12\tORF2\t0\t-
chr3\t5\t6\tORF3\t0\t+
"""

MB01 = """chr1\t100\t101\tp\t5\t+\tchr1\t100\t101\tORF1\t0\t+
chr1\t102\t103\tp\t2\t+\tchr1\t102\t103\tORF1\t0\t+
chr2\t10\t11\tp\t4\t-\tchr2\t10\t11\tORF2\t0\t-
"""

MB02 = """browser position chr3:1-10
chr3\t5\t6\tp\t1\t+\tchr3\t5\t6\tORF3\t0\t+
"""


@pytest.mark.unit
class TestPsites(unittest.TestCase):

    @pytest.fixture(autouse=True)
    def _tmp_path(self,tmp_path):
        self.tmp_path = str(tmp_path)

    def test_reference_lengths(self):
        lengths = read_reference_psites(write_text(self.tmp_path,"reference.bed",REFERENCE))
        self.assertEqual(list(lengths.index),["ORF1","ORF2","ORF3"])
        self.assertEqual(list(lengths),[3,2,1])
        self.assertEqual(lengths.index.name,"feature_id")

    def test_intersect(self):
        counts = read_intersect_bed(write_text(self.tmp_path,"MB01_intersect.bed",MB01))
        self.assertEqual(counts.to_dict(),{ "ORF1" : 7, "ORF2" : 4 })

    def test_intersect_bad_score(self):
        fn = write_text(self.tmp_path,"MB01_intersect.bed",MB01.replace("\t4\t","\tfour\t"))
        with self.assertRaises(MalformedFileError):
            read_intersect_bed(fn)

    def test_intersect_too_few_columns(self):
        fn = write_text(self.tmp_path,"MB01_intersect.bed","chr1\t100\t101\tp\t5\t+\n")
        with self.assertRaises(MalformedFileError):
            read_intersect_bed(fn)

    def test_candidate_from_filename(self):
        self.assertEqual(candidate_from_filename("/data/MB12_R1_001_intersect.bed"),"MB12_R1_001")
        self.assertEqual(candidate_from_filename("/data/MB12.bed"),"MB12.bed")
        self.assertEqual(candidate_from_filename("MB12.psites.bed",suffix=".psites.bed"),"MB12")

    def test_psite_matrix_with_reference(self):
        reference = read_reference_psites(write_text(self.tmp_path,"reference.bed",REFERENCE))
        files = [write_text(self.tmp_path,"MB01_intersect.bed",MB01),
                 write_text(self.tmp_path,"MB02_intersect.bed",MB02),
                 write_text(self.tmp_path,"MB03_intersect.bed","track name=empty\n")]

        counts = read_psite_counts(files,reference_lengths=reference)
        self.assertEqual(list(counts.columns),["MB01","MB02","MB03"])
        self.assertEqual(list(counts.index),["ORF1","ORF2","ORF3"])
        self.assertEqual(counts.values.tolist(),[[7,0,0],[4,0,0],[0,1,0]])

    def test_psite_matrix_without_reference(self):
        files = [write_text(self.tmp_path,"MB01_intersect.bed",MB01),
                 write_text(self.tmp_path,"MB02_intersect.bed",MB02)]
        counts = read_psite_counts(files)
        self.assertEqual(sorted(counts.index),["ORF1","ORF2","ORF3"])
        self.assertEqual(counts.loc["ORF3","MB01"],0)
        self.assertEqual(counts.loc["ORF3","MB02"],1)

    def test_duplicate_candidates(self):
        os.mkdir(os.path.join(self.tmp_path,"rep"))
        files = [write_text(self.tmp_path,"MB01_intersect.bed",MB01),
                 write_text(os.path.join(self.tmp_path,"rep"),"MB01_intersect.bed",MB01)]
        with self.assertRaises(ValueError):
            read_psite_counts(files)
