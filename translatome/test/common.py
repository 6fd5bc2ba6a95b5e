#!/usr/bin/env python
"""Helpers shared by unit and functional tests"""
import os
import pandas as pd

from translatome.util.io.openers import FEATURE_INDEX_NAME


#===============================================================================
# Synthetic tables
#===============================================================================

def make_matrix(rows,columns):
    """Build a feature x sample matrix from a dictionary of rows

    Parameters
    ----------
    rows : dict
        Feature key -> list of values, in the order of `columns`

    columns : list
        Sample keys

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    df = pd.DataFrame.from_dict(rows,orient="index",columns=columns)
    df.index.name = FEATURE_INDEX_NAME
    return df

def make_metadata(rows,files_column="rnaseq_files"):
    """Build a metadata table from `(sample_id, file_field)` pairs"""
    return pd.DataFrame({ "sample_id"  : [X[0] for X in rows],
                          files_column : [X[1] for X in rows],
                        })


#===============================================================================
# Temporary files
#===============================================================================

def write_text(dirname,name,text):
    """Write `text` to `dirname/name` and return the full path"""
    path = os.path.join(str(dirname),name)
    with open(path,"w") as fout:
        fout.write(text)
    return path

FEATURECOUNTS_TEMPLATE = """# Program:featureCounts v2.0.1; Command:"featureCounts" "-a" "genes.gtf"
Geneid\tChr\tStart\tEnd\tStrand\tLength\t%s
%s
"""

def featurecounts_text(samples,rows,prefix="/data/star/"):
    """Format a featureCounts table

    Parameters
    ----------
    samples : list
        Sample tokens; headers become `prefix + token + '_Aligned.sortedByCoord.out.bam'`

    rows : list
        `(gene_id, length, [counts])` tuples
    """
    headers = "\t".join("%s%s_Aligned.sortedByCoord.out.bam" % (prefix,X) for X in samples)
    lines = ["%s\tchr1;chr1\t100;300\t200;500\t+;+\t%s\t%s" % (gene,length,"\t".join(str(X) for X in counts))
             for gene, length, counts in rows]
    return FEATURECOUNTS_TEMPLATE % (headers,"\n".join(lines))
