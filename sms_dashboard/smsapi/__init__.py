"""SMS backend client library.

Keep package import lightweight; import heavy submodules explicitly where needed.
"""

__version__ = "1.0.0"
__all__ = [
	"client",
	"auth",
	"endpoints",
	"normalizer",
	"models",
	"exceptions",
	"utils",
]
