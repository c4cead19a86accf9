"""
Ordering of build steps so every image is built after the image it is layered on.
"""
from typing import Dict, List, Optional
from ..errors import OrderError
from ..MODELS.build_step import BuildStep
from ..REGISTRY.image_reference import ImageReference


def base_name(base: Optional[str]) -> Optional[str]:
    """
    Returns the repository name of a base image reference, without tag or digest.
    """
    if not base:
        return None
    return ImageReference.parse(base).name


class DependencyResolver:
    """
    Checks or computes the order in which build steps run.

    The pipeline keeps its hand-written order by default; resolve_order is only
    used on request.
    """
    def validate_order(self, steps: List[BuildStep]) -> List[BuildStep]:
        """
        Verifies that each step comes after the step producing its base image.

        :param steps: Steps in the order they will run.
        :return: The same steps.
        :raises OrderError: On duplicate images or a base built later than its dependent.
        """
        positions: Dict[str, int] = {}
        for index, step in enumerate(steps):
            if step.image in positions:
                raise OrderError(f"Image {step.image} is built by more than one step")
            positions[step.image] = index

        for index, step in enumerate(steps):
            base = base_name(step.base)
            if base in positions and positions[base] >= index:
                raise OrderError(
                    f"Step {step.image} is layered on {base}, which is built "
                    f"{'by the same step' if base == step.image else 'later'}"
                )
        return steps

    def resolve_order(self, steps: List[BuildStep]) -> List[BuildStep]:
        """
        Determines a build order using topological sort over declared bases.

        Steps keep their written order wherever their bases allow it.

        :param steps: Steps in their written order.
        :return: Steps in an order where every base is built first.
        :raises OrderError: If a circular dependency is detected.
        """
        by_image: Dict[str, BuildStep] = {}
        for step in steps:
            if step.image in by_image:
                raise OrderError(f"Image {step.image} is built by more than one step")
            by_image[step.image] = step

        ordered: List[BuildStep] = []
        visited = set()
        processing = set()

        def visit(step: BuildStep):
            if step.image in processing:
                raise OrderError(f"Circular dependency detected involving {step.image}")
            if step.image in visited:
                return
            processing.add(step.image)
            base = base_name(step.base)
            # Only depend on images produced by the pipeline itself
            if base in by_image:
                visit(by_image[base])
            processing.remove(step.image)
            visited.add(step.image)
            ordered.append(step)

        for step in steps:
            visit(step)

        return ordered
