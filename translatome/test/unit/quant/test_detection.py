#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.quant.detection`"""
import unittest
import numpy
import pandas as pd
import pytest
from scipy.stats import norm

from translatome.quant.config import PipelineConfig
from translatome.quant.detection import detect_translation, detection_matrix,\
                                        detection_summary, calibrate_threshold,\
                                        UNASSIGNED_CATEGORY
from translatome.util.services.exceptions import FeatureSetEmpty
from translatome.test.common import make_matrix


@pytest.mark.unit
class TestDetectTranslation(unittest.TestCase):

    def setUp(self):
        self.abundance = make_matrix({ "ORF1_CDS" : [5,5,5,5,5,5],
                                       "ORF2"     : [1,1,1,1,1,1],
                                       "ORF3"     : [0,2,2,2,0,0],
                                       "ORF4"     : [9,9,9,9,9,0],
                                     },["S%s" % X for X in range(1,7)])

    def test_threshold_is_strict(self):
        found = detection_matrix(self.abundance,1.0)
        self.assertFalse(found.loc["ORF2"].any())
        self.assertTrue(found.loc["ORF1_CDS"].all())

    def test_support_and_detected(self):
        result = detect_translation(self.abundance,threshold=1.0,min_samples=3)
        self.assertEqual(list(result.support),[6,0,3,5])
        self.assertEqual(result.detected,["ORF1_CDS","ORF3","ORF4"])
        self.assertEqual(len(result),3)

    def test_config_defaults(self):
        result = detect_translation(self.abundance,config=PipelineConfig.for_granularity("orf"))
        self.assertEqual(result.threshold,1.0)
        self.assertEqual(result.min_samples,5)
        self.assertEqual(result.detected,["ORF1_CDS","ORF4"])

    def test_min_samples_monotonic(self):
        rng = numpy.random.RandomState(5)
        abundance = pd.DataFrame(rng.lognormal(0,2,size=(200,10)),
                                 index=["F%s" % X for X in range(200)])
        previous = None
        for min_samples in range(1,12):
            detected = set(detect_translation(abundance,threshold=1.0,min_samples=min_samples).detected)
            if previous is not None:
                self.assertTrue(detected <= previous)
            previous = detected
        self.assertEqual(previous,set())

    def test_categories(self):
        categories = { "ORF1_CDS" : "CDS", "ORF3" : "uORF", "ORF4" : "uORF" }
        result = detect_translation(self.abundance,threshold=1.0,min_samples=3,categories=categories)
        self.assertEqual(list(result.table["category"]),["CDS",UNASSIGNED_CATEGORY,"uORF","uORF"])

        summary = detection_summary(result)
        self.assertEqual(list(summary.index),["CDS","uORF",UNASSIGNED_CATEGORY])
        self.assertEqual(list(summary["detected"]),[1,2,0])
        self.assertEqual(list(summary["total"]),[1,2,1])
        self.assertEqual(list(summary["fraction"]),[1.0,1.0,0.0])

    def test_bad_min_samples(self):
        with self.assertRaises(ValueError):
            detect_translation(self.abundance,min_samples=0)


@pytest.mark.unit
class TestCalibrateThreshold(unittest.TestCase):

    def test_bimodal(self):
        quantiles = numpy.linspace(0.005,0.995,500)
        logs = numpy.concatenate([norm.ppf(quantiles,loc=-3),norm.ppf(quantiles,loc=5)])
        abundance = pd.DataFrame((2**logs).reshape(100,10))
        found = calibrate_threshold(abundance)
        self.assertGreater(found,2**-1)
        self.assertLess(found,2**3)

    def test_zeros_ignored(self):
        quantiles = numpy.linspace(0.005,0.995,500)
        logs = numpy.concatenate([norm.ppf(quantiles,loc=-3),norm.ppf(quantiles,loc=5)])
        values = numpy.concatenate([2**logs,numpy.zeros(200)])
        found = calibrate_threshold(pd.DataFrame(values.reshape(120,10)))
        self.assertGreater(found,2**-1)
        self.assertLess(found,2**3)

    def test_unimodal_raises(self):
        logs = norm.ppf(numpy.linspace(0.01,0.99,500))
        with self.assertRaises(ValueError):
            calibrate_threshold(pd.DataFrame((2**logs).reshape(50,10)))

    def test_too_few_values(self):
        with self.assertRaises(FeatureSetEmpty):
            calibrate_threshold(pd.DataFrame([[0,3,3],[0,0,3]]))
