"""
Helpers for understanding where reads and ASVs get lost.

* read length check of the cleaned reads and the DADA2 truncation it implies
* per-stage losses of the DADA2 denoising stats
* number of ASVs/samples of the intermediate tables
* reset of the generated outputs before a fresh run
"""
import gzip
import os
import shutil
import sys
from itertools import islice
from os.path import dirname, join, exists, basename

import pandas as pd
from Bio import SeqIO

sys.path.insert(0, dirname(dirname(__file__)))
from toolkit import run_cmd, valid_path
from static.q2_function import read_feature_table
from static.utils import get_files

dada2_stages = ['input', 'filtered', 'denoised', 'merged', 'non-chimeric']
stage_names = {'filtered': 'quality filtering',
               'denoised': 'denoising',
               'merged': 'pair merging',
               'non-chimeric': 'chimera removal'}


def read_lengths(infile, n=1000):
    if infile.endswith('.gz'):
        handle = gzip.open(infile, 'rt')
    else:
        handle = open(infile)
    with handle:
        return [len(read.seq) for read in islice(SeqIO.parse(handle, 'fastq'), n)]


def length_summary(lengths):
    """
    min, max and median read length. The median is the lower middle element
    of the sorted lengths (element n//2 counting from 1), never an average.
    """
    lengths = pd.Series(lengths, dtype=int).sort_values().reset_index(drop=True)
    if lengths.empty:
        raise Exception("no read to summarize")
    return dict(min=int(lengths.min()),
                max=int(lengths.max()),
                median=int(lengths[max(len(lengths) // 2 - 1, 0)]))


def recommend_truncation(r1_lengths, r2_lengths, amplicon_length=460):
    """
    DADA2 truncation suggested by the read lengths.

    Reads are truncated 10bp below their median (at most 240bp), the expected
    overlap is `trunc_f + trunc_r - amplicon_length`.

    status is one of
        critical: a median under 150bp, the amplicon cannot be covered
        short:    a median under 250bp, truncate 20bp below the median
        ok:       keep up to 240bp with relaxed expected errors
    """
    r1 = length_summary(r1_lengths)
    r2 = length_summary(r2_lengths)
    trunc_f = r1['median'] - 10 if r1['median'] < 250 else 240
    trunc_r = r2['median'] - 10 if r2['median'] < 250 else 240
    overlap = trunc_f + trunc_r - amplicon_length

    result = dict(r1=r1,
                  r2=r2,
                  amplicon_length=amplicon_length,
                  overlap=overlap,
                  low_overlap=False,
                  dada2_args={})
    if r1['median'] < 150 or r2['median'] < 150:
        result['status'] = 'critical'
    elif r1['median'] < 250 or r2['median'] < 250:
        result['status'] = 'short'
        result['dada2_args'] = dict(trunc_len_f=r1['median'] - 20,
                                    trunc_len_r=r2['median'] - 20)
        result['low_overlap'] = overlap < 40
    else:
        result['status'] = 'ok'
        result['dada2_args'] = dict(trunc_len_f=trunc_f,
                                    trunc_len_r=trunc_r,
                                    max_ee_f=3,
                                    max_ee_r=3,
                                    trunc_q=2,
                                    min_overlap=12)
    return result


def find_paired_reads(cleaned_dir):
    r1_files = get_files(cleaned_dir, '*_R1_paired.fastq.gz')
    r2_files = get_files(cleaned_dir, '*_R2_paired.fastq.gz')
    if not r1_files or not r2_files:
        raise Exception("no paired file found in %s" % cleaned_dir)
    return r1_files[0], r2_files[0]


def summarize_dada2_stats(df, low_read_threshold=1000):
    """
    :param df: denoising stats, one row per sample
    :return: (DataFrame of losses per stage, DataFrame of samples under `low_read_threshold` final reads)
    """
    rows = []
    stages = [_ for _ in dada2_stages if _ in df.columns]
    for before, after in zip(stages, stages[1:]):
        before_total = int(df[before].sum())
        after_total = int(df[after].sum())
        loss = before_total - after_total
        rows.append(dict(step=stage_names.get(after, after),
                         before=before_total,
                         after=after_total,
                         lost=loss,
                         lost_pct=(loss / before_total * 100) if before_total > 0 else 0))
    losses = pd.DataFrame(rows, columns=['step', 'before', 'after', 'lost', 'lost_pct'])

    low_samples = pd.DataFrame(columns=['final_reads', 'input_reads', 'retention_pct'])
    if 'non-chimeric' in df.columns:
        sub_df = df.loc[df['non-chimeric'] < low_read_threshold, :].sort_values('non-chimeric')
        inputs = sub_df['input'] if 'input' in sub_df.columns else pd.Series(0, index=sub_df.index)
        low_samples = pd.DataFrame({'final_reads': sub_df['non-chimeric'].astype(int),
                                    'input_reads': inputs.astype(int)},
                                   index=sub_df.index)
        low_samples['retention_pct'] = [(f / i * 100) if i > 0 else 0
                                        for f, i in zip(low_samples['final_reads'],
                                                        low_samples['input_reads'])]
    return losses, low_samples


def dada2_global_stats(df):
    total_input = int(df['input'].astype(int).sum())
    total_filtered = int(df['filtered'].astype(int).sum())
    total_merged = int(df['merged'].astype(int).sum())
    total_final = int(df['non-chimeric'].astype(int).sum())
    return dict(input=total_input,
                filtered=total_filtered,
                merged=total_merged,
                final=total_final,
                filter_pct=(total_filtered / total_input * 100) if total_input > 0 else 0,
                merge_pct=(total_merged / total_filtered * 100) if total_filtered > 0 else 0,
                final_pct=(total_final / total_input * 100) if total_input > 0 else 0)


def feature_counts(feature_tsv):
    df = read_feature_table(feature_tsv)
    return df.shape[0], df.shape[1]


def count_table_features(qza, tmp_dir, qiime2_p='qiime', biom_p='biom', log_file=None):
    """
    export a FeatureTable[Frequency] artifact and count its ASVs and samples.
    :return: (number of ASVs, number of samples) or None if the artifact is missing
    """
    if not exists(qza):
        return None
    valid_path(tmp_dir, check_odir=True)
    try:
        run_cmd(f"{qiime2_p} tools export --input-path {qza} --output-path {tmp_dir}",
                log_file=log_file)
        run_cmd(f"{biom_p} convert -i {tmp_dir}/feature-table.biom -o {tmp_dir}/feature-table.tsv --to-tsv",
                log_file=log_file)
        return feature_counts(join(tmp_dir, 'feature-table.tsv'))
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)


def reset_outputs(base_dir, qiime_dir, tmp_dirs, files, cleaned_dir):
    """
    remove everything produced from the qiime2 import onward so the next run
    starts from a clean state. The qiime2 directory is recreated empty.

    :return: (removed paths, sample ids still available in `cleaned_dir`)
    """
    removed = []
    qiime_dir = join(base_dir, qiime_dir)
    if os.path.isdir(qiime_dir):
        shutil.rmtree(qiime_dir)
        removed.append(qiime_dir)
    os.makedirs(qiime_dir, exist_ok=True)
    for d in tmp_dirs:
        d = join(base_dir, d)
        if os.path.isdir(d):
            shutil.rmtree(d)
            removed.append(d)
    for f in files:
        f = join(base_dir, f)
        if os.path.isfile(f):
            os.remove(f)
            removed.append(f)

    cleaned = []
    cleaned_dir = join(base_dir, cleaned_dir)
    if os.path.isdir(cleaned_dir):
        cleaned = sorted(basename(_).replace('_R1_paired.fastq.gz', '')
                         for _ in get_files(cleaned_dir, '*_R1_paired.fastq.gz'))
    return removed, cleaned
