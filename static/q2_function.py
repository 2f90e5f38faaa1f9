"""
Reading and reshaping of the flat tables exported from qiime2 artifacts.

Nothing here talks to qiime2 itself. The artifacts are exported with
`qiime tools export` / `biom convert` by the tasks, these functions only
read the resulting TSV files with pandas.
"""
import os
import zipfile
from os.path import join, abspath, basename

import pandas as pd


def read_feature_table(infile):
    """
    read a `biom convert --to-tsv` table.
    The first line is the `# Constructed from biom file` comment, the second one
    the header starting with `#OTU ID` (or `#ASV_ID` once renamed).
    """
    df = pd.read_csv(infile, sep='\t', skiprows=1, index_col=0)
    df.index = df.index.astype(str)
    df.index.name = 'ASV_ID'
    return df


def rename_feature_header(infile, old='#OTU ID', new='#ASV_ID'):
    with open(infile) as f1:
        text = f1.read()
    with open(infile, 'w') as f1:
        f1.write(text.replace(old, new))
    return infile


def get_sample_depths(infile):
    df = read_feature_table(infile)
    return df.sum(axis=0).astype(int)


def choose_sampling_depth(depths, min_depth=1000, quantile=0.1):
    """
    rarefaction depth: the `quantile` of the per-sample depths reaching `min_depth`,
    or the median of all depths when no sample reaches it.

    :return: (sampling_depth, max_depth)
    """
    depths = pd.Series(depths).astype(int)
    if depths.empty:
        raise Exception("feature table contains no sample, cannot calculate sampling depth")
    filtered_depths = depths[depths >= min_depth]
    if len(filtered_depths) > 0:
        sampling_depth = int(filtered_depths.quantile(quantile))
    else:
        sampling_depth = int(depths.median())
    max_depth = int(depths.max())
    if sampling_depth <= 0:
        raise Exception("Could not calculate sampling depth (depth is %s). Check the final table" % sampling_depth)
    return sampling_depth, max_depth


def contaminant_ids(infile, ofile):
    """
    ASV ids found in the negative-control table, written as qiime2 metadata
    with a single `feature-id` column.
    """
    df = read_feature_table(infile)
    ids = list(df.index)
    with open(ofile, 'w') as f1:
        f1.write("feature-id\n")
        for _id in ids:
            f1.write(f"{_id}\n")
    return ids


def read_alpha_vector(infile, name):
    "an exported `alpha-diversity.tsv`, with its value column renamed into `name`"
    df = pd.read_csv(infile, sep='\t', index_col=0)
    df.index = df.index.astype(str)
    df.index.name = 'sample-id'
    df.columns = [name]
    return df


def merge_alpha_vectors(vectors, sampling_depth):
    """
    outer join of several alpha vectors.

    :param vectors: dict of name -> exported `alpha-diversity.tsv` (or a renamed copy)
    :param sampling_depth: inserted as the first column `rarefaction_depth`
    """
    df_merged = None
    for name, infile in sorted(vectors.items()):
        df_temp = read_alpha_vector(infile, name)
        if df_merged is None:
            df_merged = df_temp
        else:
            df_merged = df_merged.join(df_temp, how="outer")
    if df_merged is None:
        raise Exception("no alpha diversity vector to merge")
    df_merged.insert(0, 'rarefaction_depth', sampling_depth)
    df_merged = df_merged.sort_index()
    return df_merged


def read_taxonomy(infile):
    tax = pd.read_csv(infile, sep='\t', index_col=0)
    tax.index = tax.index.astype(str)
    # newer exports carry a `#q2:types` line below the header
    tax = tax.loc[~tax.index.str.startswith('#q2:'), :]
    tax = tax.rename(columns={"Taxon": "taxonomy", "Confidence": "confidence"})
    tax.index.name = 'ASV_ID'
    return tax


def merge_abundance_taxonomy(feature_table, taxonomy):
    """
    ASV_ID, taxonomy, confidence, Sample1, Sample2, ...
    only ASVs present in both tables are kept.
    """
    tab = read_feature_table(feature_table)
    tax = read_taxonomy(taxonomy)
    merged = tax.join(tab, how="inner")
    merged.index.name = 'ASV_ID'
    return merged


def sample_depths_table(feature_table, sampling_depth):
    depths = get_sample_depths(feature_table)
    depths_df = pd.DataFrame({'sample_id': depths.index,
                              'total_reads': depths.values,
                              'rarefaction_depth': [sampling_depth] * len(depths)})
    depths_df = depths_df.sort_values('sample_id')
    return depths_df


def read_dada2_stats(infile):
    "exported `stats.tsv`, the `#q2:types` line is dropped as a comment"
    df = pd.read_csv(infile, sep='\t', comment='#', index_col=0)
    df.index = df.index.astype(str)
    df.index.name = 'sample-id'
    return df


def extract_visualization_csv(qzv, odir):
    """
    copy every csv stored inside a qiime2 visualization (a zip archive) into `odir`.
    """
    os.makedirs(odir, exist_ok=True)
    ofiles = []
    with zipfile.ZipFile(qzv) as archive:
        for member in archive.namelist():
            if not member.endswith('.csv'):
                continue
            ofile = join(odir, basename(member))
            with archive.open(member) as src, open(ofile, 'wb') as dst:
                dst.write(src.read())
            ofiles.append(abspath(ofile))
    return ofiles


def list_fasta_ids(infile):
    from Bio import SeqIO
    return [record.id for record in SeqIO.parse(infile, 'fasta')]
