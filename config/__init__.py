from os.path import dirname, join
import luigi
from . import soft_db_path
from . import default_file_structures
from . import default_file_structures as dfs
from tasks.basic_tasks import base_luigi_task
from toolkit import run_cmd, valid_path, touch_outputs

# columns required in the `--tab` input table
input_template_path = join(dirname(__file__),
                           "data_input.template")
