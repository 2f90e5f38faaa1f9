import os
import logging
from collections import OrderedDict
from glob import glob

import pandas as pd

logger = logging.getLogger('luigi-interface')


class fileparser():
    def __init__(self, filename):
        filename = os.path.abspath(filename)

        self.df = pd.read_csv(filename, sep='\t', index_col=None, dtype=str)

        self.cols, self.df = validate_df(self.df, filename)
        self.df = self.df.set_index("sample ID")
        self.df = self.df.fillna('')
    def get_attr(self, col):
        if col == self.df.index.name:
            return list(self.df.index)
        if col not in self.cols:
            raise Exception("attr %s not in input df" % col)
        else:
            return self.df[col].to_dict()

    @property
    def sid(self):
        return self.get_attr("sample ID")

    @property
    def R1(self):
        return self.get_attr("R1")

    @property
    def R2(self):
        return self.get_attr("R2")

    def pairs(self):
        R1, R2 = self.R1, self.R2
        return OrderedDict((sid, (R1[sid], R2[sid])) for sid in self.sid)


def validate_df(df, filename):
    from config import input_template_path
    columns_values = open(input_template_path).read().strip('\n').split('\t')

    if set(columns_values).difference(set(df.columns)):
        missing_cols = set(columns_values).difference(set(df.columns))
        raise Exception("some required columns is missing.  "
                        "%s is missing " % ';'.join(missing_cols))

    if df["sample ID"].duplicated().any():
        raise Exception("sample_name has duplicated.")

    chdir = os.path.dirname(os.path.abspath(filename))
    # relative paths are relative to the input table, not to the cwd
    for col in ["R1", "R2"]:
        df[col] = [v if (pd.isna(v) or os.path.isabs(v)) else os.path.join(chdir, v)
                   for v in df[col]]
    return columns_values, df


def scan_raw_data(raw_dir,
                  samples,
                  r1_suffix='_R1_001.fastq.gz',
                  r2_suffix='_R2_001.fastq.gz',
                  lane_suffix='_L001_R1_001.fastq.gz'):
    """
    match raw fastq files against the configured sample mapping.

    :param raw_dir: directory holding the demultiplexed *_R1_001.fastq.gz / *_R2_001.fastq.gz
    :param samples: dict of raw file key -> sample-id. The first key contained in the
                    file base name wins.
    :return: OrderedDict sample-id -> (R1 path, R2 path)
    """
    pairs = OrderedDict()
    for file_r1 in sorted(glob(os.path.join(raw_dir, '*' + r1_suffix))):
        filename = os.path.basename(file_r1)
        if filename.endswith(lane_suffix):
            base_name = filename[:-len(lane_suffix)]
        else:
            base_name = filename[:-len(r1_suffix)]

        sample_id = None
        for key, sid in samples.items():
            if key in base_name:
                sample_id = sid
                break
        if sample_id is None:
            logger.warning("No sample ID mapping found for %s. Skipping...", filename)
            continue
        if sample_id in pairs:
            raise Exception("sample %s matches more than one raw file (%s)" % (sample_id, filename))
        file_r2 = file_r1[:-len(r1_suffix)] + r2_suffix
        pairs[sample_id] = (os.path.abspath(file_r1),
                            os.path.abspath(file_r2))
    if not pairs:
        raise Exception("no raw file of %s matches the sample mapping" % raw_dir)
    return pairs
