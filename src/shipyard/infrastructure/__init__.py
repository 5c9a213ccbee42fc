"""
shipyard.infrastructure - Collaborators of the Step Bodies
============================================================

Everything a deploy step touches outside the pipeline engine:

    - process_runner:  ProcessRunner (external commands, live output)
    - extraction:      OutputExtractor and the Ethereum token patterns
    - gate:            InteractiveGate (operator keypress checkpoints)
    - stack_outputs:   StackOutputs (CDK outputs file reader)
    - materializer:    ConfigMaterializer (front end .env rendering)
    - credentials:     AWS shared credentials loader
"""

from shipyard.infrastructure.credentials import AwsCredentials, load_shared_credentials
from shipyard.infrastructure.extraction import (
    CONTRACT_ADDRESS,
    ETHEREUM_ADDRESS,
    PRIVATE_KEY,
    OutputExtractor,
)
from shipyard.infrastructure.gate import InteractiveGate
from shipyard.infrastructure.materializer import (
    MARKETPLACE_ENV_TEMPLATE,
    ConfigMaterializer,
    EnvFileTemplate,
)
from shipyard.infrastructure.process_runner import ProcessRunner
from shipyard.infrastructure.stack_outputs import StackOutputs

__all__ = [
    "ProcessRunner",
    "OutputExtractor",
    "ETHEREUM_ADDRESS",
    "CONTRACT_ADDRESS",
    "PRIVATE_KEY",
    "InteractiveGate",
    "StackOutputs",
    "ConfigMaterializer",
    "EnvFileTemplate",
    "MARKETPLACE_ENV_TEMPLATE",
    "AwsCredentials",
    "load_shared_credentials",
]
