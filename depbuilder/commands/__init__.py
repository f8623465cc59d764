from .generate import generate
from .install import install
from .locate import locate
from .config import config
from .log import log
from .version import version
