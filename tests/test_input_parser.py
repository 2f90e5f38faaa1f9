import pytest

from input_parser import fileparser, scan_raw_data
from config import default_params


def test_fileparser_pairs_resolves_relative_paths(tmp_path):
    tab = tmp_path / 'data_input.tsv'
    tab.write_text("sample ID\tR1\tR2\n"
                   "T1_CO\treads/T1_R1.fastq.gz\treads/T1_R2.fastq.gz\n"
                   "T2_CO\t/data/T2_R1.fastq.gz\t/data/T2_R2.fastq.gz\n")
    pairs = fileparser(str(tab)).pairs()
    assert list(pairs) == ['T1_CO', 'T2_CO']
    assert pairs['T1_CO'] == (str(tmp_path / 'reads' / 'T1_R1.fastq.gz'),
                              str(tmp_path / 'reads' / 'T1_R2.fastq.gz'))
    assert pairs['T2_CO'][1] == '/data/T2_R2.fastq.gz'


def test_fileparser_rejects_bad_tables(tmp_path):
    missing = tmp_path / 'missing.tsv'
    missing.write_text("sample ID\tR1\nS1\ta.fq\n")
    with pytest.raises(Exception, match='R2'):
        fileparser(str(missing))
    duplicated = tmp_path / 'dup.tsv'
    duplicated.write_text("sample ID\tR1\tR2\nS1\ta\tb\nS1\tc\td\n")
    with pytest.raises(Exception, match='duplicated'):
        fileparser(str(duplicated))


def make_raw(raw_dir, names):
    raw_dir.mkdir(exist_ok=True)
    for name in names:
        (raw_dir / name).write_text('')


def test_scan_raw_data(tmp_path):
    raw_dir = tmp_path / '01_raw_data'
    make_raw(raw_dir, ['BAR253117_S114_L001_R1_001.fastq.gz',
                       'BAR253117_S114_L001_R2_001.fastq.gz',
                       'BL_PCR_Jourand_S151_R1_001.fastq.gz',
                       'BL_PCR_Jourand_S151_R2_001.fastq.gz',
                       'Undetermined_S0_R1_001.fastq.gz',
                       'Undetermined_S0_R2_001.fastq.gz'])
    pairs = scan_raw_data(str(raw_dir), default_params.samples)
    assert list(pairs) == ['T1_CO', 'BL_PCR_Jourand']
    assert pairs['T1_CO'] == (str(raw_dir / 'BAR253117_S114_L001_R1_001.fastq.gz'),
                              str(raw_dir / 'BAR253117_S114_L001_R2_001.fastq.gz'))


def test_scan_raw_data_errors(tmp_path):
    raw_dir = tmp_path / 'raw'
    make_raw(raw_dir, ['Undetermined_S0_R1_001.fastq.gz'])
    with pytest.raises(Exception):
        scan_raw_data(str(raw_dir), default_params.samples)

    dup_dir = tmp_path / 'dup'
    make_raw(dup_dir, ['BAR253117_S114_L001_R1_001.fastq.gz',
                       'BAR253117_S114_L002_R1_001.fastq.gz'])
    with pytest.raises(Exception, match='T1_CO'):
        scan_raw_data(str(dup_dir), default_params.samples)
