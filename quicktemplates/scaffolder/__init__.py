"""QuickTemplates scaffolder -- lays out a Julia package from a config snapshot.

Quick usage::

    from quicktemplates.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config)  # config carries a resolved uuid
    project_path = generator.generate_project(run_postgen=False)
"""

from quicktemplates.scaffolder.context import build_template_data
from quicktemplates.scaffolder.features import DEFAULT_REGISTRY, FeatureRegistry
from quicktemplates.scaffolder.generator import ProjectGenerator
from quicktemplates.scaffolder.postgen import PostGenerator
from quicktemplates.scaffolder.templates import TemplateRenderer

__all__ = [
    "DEFAULT_REGISTRY",
    "FeatureRegistry",
    "PostGenerator",
    "ProjectGenerator",
    "TemplateRenderer",
    "build_template_data",
]
