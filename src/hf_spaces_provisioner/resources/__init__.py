"""Resource models for Hugging Face Spaces."""

from hf_spaces_provisioner.resources.space import SpaceResource, renamed_identity, split_identity

__all__ = ["SpaceResource", "renamed_identity", "split_identity"]
