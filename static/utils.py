import os
import sys
from os.path import dirname
from glob import glob

sys.path.insert(0, dirname(dirname(__file__)))
from toolkit import get_validate_path


def get_files(indir, p):
    f_pattern = p.strip('.')
    files = glob(os.path.join(indir, f_pattern), recursive=True)
    return list(sorted(files))


def write_manifest(opath, r1_files, r2_files, ids):
    """
    path inside manifest must is absolute path
    (layout of PairedEndFastqManifestPhred33V2)
    :param opath:
    :param r1_files:
    :param r2_files:
    :param ids:
    :return:
    """
    os.makedirs(os.path.dirname(os.path.abspath(opath)), exist_ok=True)

    template_text = "sample-id\tforward-absolute-filepath\treverse-absolute-filepath\n"
    for r1, r2, sid in zip(r1_files, r2_files, ids):
        r1 = get_validate_path(r1)
        r2 = get_validate_path(r2)
        template_text += '\t'.join([sid, r1, r2]) + '\n'
    with open(opath, 'w') as f1:
        f1.write(template_text)
    return opath


def get_groups(samples, negative_controls,
               sample_group='Sample',
               negative_control_group='Negative_Control'):
    """
    sample-id -> group, in the order of the sample mapping.
    """
    groups = {}
    for sid in samples.values():
        if sid in groups:
            continue
        groups[sid] = negative_control_group if sid in negative_controls else sample_group
    return groups


def write_metadata(opath, groups):
    os.makedirs(os.path.dirname(os.path.abspath(opath)), exist_ok=True)
    template_text = "sample-id\tgroup\n"
    for sid, group in groups.items():
        template_text += f"{sid}\t{group}\n"
    with open(opath, 'w') as f1:
        f1.write(template_text)
    return opath


def parse_param(file, g):
    with open(file, 'r') as f1:
        exec(f1.read(), g)


def batch_params(params_dict):
    """
    render a dict into `--p-*` options of a qiime2 command.
    True becomes a flag, None/False are dropped.
    """
    extra_str = ''
    for p, val in params_dict.items():
        if val is True:
            extra_str += ' --p-%s' % p.replace('_','-')
        elif val is not None and val is not False:
            extra_str += ' --p-%s %s' % (p.replace('_','-'), val)
    return extra_str
