import zipfile

import pandas as pd
import pytest

from static.q2_function import (read_feature_table, rename_feature_header, get_sample_depths,
                                choose_sampling_depth, contaminant_ids, merge_alpha_vectors,
                                read_taxonomy, merge_abundance_taxonomy, sample_depths_table,
                                read_dada2_stats, extract_visualization_csv, list_fasta_ids)
from tests.conftest import FEATURE_TABLE, write_text


@pytest.fixture
def feature_table(tmp_path):
    return write_text(tmp_path / 'feature-table.tsv', FEATURE_TABLE)


def test_read_feature_table(feature_table):
    df = read_feature_table(feature_table)
    assert df.index.name == 'ASV_ID'
    assert list(df.index) == ['asv1', 'asv2', 'asv3']
    assert list(df.columns) == ['T1_CO', 'T2_CO', 'BL_PCR_Jourand']


def test_rename_feature_header(feature_table):
    rename_feature_header(feature_table)
    lines = open(feature_table).read().splitlines()
    assert lines[1].startswith('#ASV_ID\t')
    assert read_feature_table(feature_table).shape == (3, 3)


def test_sample_depths(feature_table):
    depths = get_sample_depths(feature_table)
    assert depths.to_dict() == {'T1_CO': 2000, 'T2_CO': 3000, 'BL_PCR_Jourand': 10}


def test_choose_sampling_depth_quantile_of_deep_samples():
    depth, max_depth = choose_sampling_depth({'a': 500, 'b': 1000, 'c': 2000, 'd': 3000})
    # 10% quantile of 1000, 2000, 3000
    assert depth == 1200
    assert max_depth == 3000


def test_choose_sampling_depth_median_when_all_shallow():
    assert choose_sampling_depth([100, 200, 300, 999]) == (250, 999)


def test_choose_sampling_depth_errors():
    with pytest.raises(Exception):
        choose_sampling_depth([0, 0])
    with pytest.raises(Exception):
        choose_sampling_depth([])


def test_contaminant_ids(tmp_path):
    neg = write_text(tmp_path / 'neg.tsv',
                     "# Constructed from biom file\n#OTU ID\tBL_PCR_Jourand\nasv2\t3.0\nasv3\t7.0\n")
    ofile = str(tmp_path / 'contamination_ids.txt')
    assert contaminant_ids(neg, ofile) == ['asv2', 'asv3']
    assert open(ofile).read() == "feature-id\nasv2\nasv3\n"

    empty = write_text(tmp_path / 'empty.tsv', "# Constructed from biom file\n#OTU ID\tBL_PCR_Jourand\n")
    assert contaminant_ids(empty, ofile) == []
    assert open(ofile).read() == "feature-id\n"


def test_merge_alpha_vectors(tmp_path):
    shannon = write_text(tmp_path / 'shannon.tsv', "\tshannon_entropy\nT2_CO\t3.5\nT1_CO\t4.0\n")
    chao1 = write_text(tmp_path / 'chao1.tsv', "\tchao1\nT1_CO\t120\nMP1\t80\n")
    df = merge_alpha_vectors({'shannon': shannon, 'chao1': chao1}, 1200)
    assert list(df.columns) == ['rarefaction_depth', 'chao1', 'shannon']
    assert list(df.index) == ['MP1', 'T1_CO', 'T2_CO']
    assert (df['rarefaction_depth'] == 1200).all()
    assert df.loc['T1_CO', 'shannon'] == 4.0
    assert pd.isna(df.loc['MP1', 'shannon'])
    with pytest.raises(Exception):
        merge_alpha_vectors({}, 1200)


def test_merge_abundance_taxonomy(tmp_path, feature_table):
    taxonomy = write_text(tmp_path / 'taxonomy.tsv',
                          "Feature ID\tTaxon\tConfidence\n"
                          "#q2:types\tcategorical\tnumeric\n"
                          "asv1\td__Bacteria; p__Proteobacteria\t0.99\n"
                          "asv2\td__Bacteria\t0.95\n"
                          "asv9\td__Archaea\t0.80\n")
    tax = read_taxonomy(taxonomy)
    assert list(tax.columns) == ['taxonomy', 'confidence']
    assert list(tax.index) == ['asv1', 'asv2', 'asv9']

    merged = merge_abundance_taxonomy(feature_table, taxonomy)
    assert merged.index.name == 'ASV_ID'
    assert list(merged.index) == ['asv1', 'asv2']
    assert list(merged.columns) == ['taxonomy', 'confidence', 'T1_CO', 'T2_CO', 'BL_PCR_Jourand']


def test_sample_depths_table(feature_table):
    df = sample_depths_table(feature_table, 1200)
    assert list(df.columns) == ['sample_id', 'total_reads', 'rarefaction_depth']
    assert list(df['sample_id']) == ['BL_PCR_Jourand', 'T1_CO', 'T2_CO']
    assert list(df['total_reads']) == [10, 2000, 3000]
    assert set(df['rarefaction_depth']) == {1200}


def test_read_dada2_stats(tmp_path):
    stats = write_text(tmp_path / 'stats.tsv',
                       "sample-id\tinput\tfiltered\tpercentage of input passed filter\n"
                       "#q2:types\tnumeric\tnumeric\tnumeric\n"
                       "T1_CO\t1000\t800\t80.0\n")
    df = read_dada2_stats(stats)
    assert list(df.index) == ['T1_CO']
    assert df.loc['T1_CO', 'filtered'] == 800


def test_extract_visualization_csv(tmp_path):
    qzv = str(tmp_path / 'rarefaction-curves.qzv')
    with zipfile.ZipFile(qzv, 'w') as archive:
        archive.writestr('0000/data/observed_features.csv', 'sample-id,depth-10_iter-1\nT1_CO,8\n')
        archive.writestr('0000/data/shannon.csv', 'sample-id,depth-10_iter-1\nT1_CO,2.1\n')
        archive.writestr('0000/data/index.html', '<html></html>')
    ofiles = extract_visualization_csv(qzv, str(tmp_path / 'rarefaction_data'))
    assert sorted(f.split('/')[-1] for f in ofiles) == ['observed_features.csv', 'shannon.csv']
    assert open(ofiles[0]).read().startswith('sample-id,')


def test_list_fasta_ids(tmp_path):
    fasta = write_text(tmp_path / 'dna-sequences.fasta', ">asv1\nACGT\n>asv2\nGGCC\n")
    assert list_fasta_ids(fasta) == ['asv1', 'asv2']
