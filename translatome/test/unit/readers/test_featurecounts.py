#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.readers.featurecounts`"""
import gzip
import os
import unittest
import pytest

from translatome.readers.featurecounts import read_featurecounts, strip_alignment_suffix
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateFeatureKeys,\
                                                 MalformedFileError
from translatome.test.common import featurecounts_text, write_text

ROWS = [("ENSG01",1500,[10,0,3]),
        ("ENSG02",900,[5,7,0]),
        ("ENSG03",2400,[0,0,1]),
       ]


@pytest.mark.unit
class TestStripSuffix(unittest.TestCase):

    def test_strip(self):
        tests = [("/data/star_tx/MB12/MB12.Aligned.sortedByCoord.out.bam","MB12"),
                 ("MB07_R1_001_Aligned.sortedByCoord.out.bam","MB07_R1_001"),
                 ("/data/MB07.bam","MB07.bam"),
                 ("Aligned.sortedByCoord.out.bam","Aligned.sortedByCoord.out.bam"),
                 ("/data/MB01/","MB01"),
                ]
        for path, expected in tests:
            self.assertEqual(strip_alignment_suffix(path),expected,path)

    def test_custom_suffix(self):
        self.assertEqual(strip_alignment_suffix("/x/MB03.sorted.bam",suffix="sorted.bam"),"MB03")
        self.assertEqual(strip_alignment_suffix("/x/MB03.sorted.bam",suffix=""),"MB03.sorted.bam")


@pytest.mark.unit
class TestReadFeatureCounts(unittest.TestCase):

    @pytest.fixture(autouse=True)
    def _tmp_path(self,tmp_path):
        self.tmp_path = str(tmp_path)

    def test_read(self):
        fn = write_text(self.tmp_path,"counts.txt",featurecounts_text(["MB01","MB02_R1_001","MB03"],ROWS))
        counts, lengths = read_featurecounts(fn)

        self.assertEqual(list(counts.columns),["MB01","MB02_R1_001","MB03"])
        self.assertEqual(list(counts.index),["ENSG01","ENSG02","ENSG03"])
        self.assertEqual(counts.index.name,"feature_id")
        self.assertEqual(list(counts.loc["ENSG02"]),[5,7,0])
        self.assertEqual(list(lengths),[1500,900,2400])
        self.assertEqual(list(lengths.index),list(counts.index))

    def test_read_gzipped(self):
        fn = os.path.join(self.tmp_path,"counts.txt.gz")
        with gzip.open(fn,"wt") as fout:
            fout.write(featurecounts_text(["MB01","MB02","MB03"],ROWS))
        counts, _ = read_featurecounts(fn)
        self.assertEqual(counts.shape,(3,3))

    def test_missing_annotation_column(self):
        text = "Geneid\tLength\tMB01.bam\nG1\t100\t4\n"
        fn = write_text(self.tmp_path,"counts.txt",text)
        with self.assertRaises(SchemaMismatch) as ctx:
            read_featurecounts(fn)
        self.assertEqual(ctx.exception.missing,["Chr","Start","End","Strand"])

    def test_no_samples(self):
        text = "# Program:featureCounts\nGeneid\tChr\tStart\tEnd\tStrand\tLength\nG1\tchr1\t1\t10\t+\t10\n"
        fn = write_text(self.tmp_path,"counts.txt",text)
        with self.assertRaises(MalformedFileError):
            read_featurecounts(fn)

    def test_empty_file(self):
        fn = write_text(self.tmp_path,"counts.txt","# Program:featureCounts\n\n")
        with self.assertRaises(MalformedFileError):
            read_featurecounts(fn)

    def test_duplicate_features(self):
        rows = ROWS + [("ENSG01",1500,[1,1,1])]
        fn = write_text(self.tmp_path,"counts.txt",featurecounts_text(["MB01","MB02","MB03"],rows))
        with self.assertRaises(DuplicateFeatureKeys) as ctx:
            read_featurecounts(fn)
        self.assertEqual(ctx.exception.keys,["ENSG01"])

    def test_samples_collapse(self):
        fn = write_text(self.tmp_path,"counts.txt",featurecounts_text(["x/MB01","y/MB01","MB03"],ROWS,prefix="/a/"))
        with self.assertRaises(MalformedFileError):
            read_featurecounts(fn)
