from stackgen.generators.deploy_gen import DeploymentGenerator, DeploymentResult
from stackgen.generators.env_gen import EnvFiles, EnvGenerator
from stackgen.generators.guide_gen import SetupGuideGenerator
from stackgen.generators.renderer import TemplateRenderer

__all__ = [
    "DeploymentGenerator",
    "DeploymentResult",
    "EnvFiles",
    "EnvGenerator",
    "SetupGuideGenerator",
    "TemplateRenderer",
]
