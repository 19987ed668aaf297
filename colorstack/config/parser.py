import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from colorstack.errors import InvalidInputError
from colorstack.palette.colors import is_valid_hex_color


@dataclass
class ImageConfig:
    path: Optional[str] = None
    max_dimension: Optional[int] = None  # downsize so the longer side fits


@dataclass
class PaletteConfig:
    num_bands: int = 4  # 2-8 colors for multi-color printing
    mode: str = "suggested"  # "suggested" or "filaments"
    filaments: List[str] = field(default_factory=list)
    auto_base: bool = True  # background color becomes the base layer
    invert: bool = False
    iterations: int = 20
    sample_stride: int = 4
    quantization_level: int = 32


@dataclass
class ModelConfig:
    width_mm: Optional[float] = 100.0
    height_mm: Optional[float] = None  # derived from the image aspect when omitted
    layer_height_mm: float = 0.2
    base_thickness_layers: int = 4
    band_thickness_layers: int = 2

    def resolve_height(self, image_width: int, image_height: int) -> None:
        if image_width < 2 or image_height < 2:
            raise InvalidInputError(
                f"Image must be at least 2x2 pixels, got {image_width}x{image_height}"
            )
        if self.height_mm is None and self.width_mm is not None:
            self.height_mm = self.width_mm * (image_height - 1) / (image_width - 1)


@dataclass
class OutputConfig:
    filename: str = "colorstack.stl"
    instructions: bool = False  # write a *_instructions.txt next to the STL


@dataclass
class Config:
    image: ImageConfig
    palette: PaletteConfig
    model: ModelConfig
    output: OutputConfig

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'Config':
        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        image = ImageConfig(**(data.get('image') or {}))

        palette_data = dict(data.get('palette') or {})
        palette_data['filaments'] = list(palette_data.get('filaments') or [])
        palette = PaletteConfig(**palette_data)

        model = ModelConfig(**(data.get('model') or {}))
        output = OutputConfig(**(data.get('output') or {}))

        return cls(image=image, palette=palette, model=model, output=output)

    def validate(self) -> None:
        if not self.image.path:
            raise ValueError("An input image path must be specified")

        if self.image.max_dimension is not None and self.image.max_dimension < 2:
            raise ValueError("max_dimension must be at least 2 pixels")

        # Validate palette configuration
        if not (2 <= self.palette.num_bands <= 8):
            raise ValueError("Number of bands must be between 2 and 8")
        if self.palette.mode not in ["suggested", "filaments"]:
            raise ValueError("Palette mode must be 'suggested' or 'filaments'")
        for color in self.palette.filaments:
            if not is_valid_hex_color(color):
                raise ValueError(f"Filament color must look like #RRGGBB, got {color!r}")
        if self.palette.mode == "filaments" and not self.palette.filaments:
            raise ValueError("Palette mode 'filaments' requires at least one filament color")
        if self.palette.iterations < 1:
            raise ValueError("Iterations must be at least 1")
        if self.palette.sample_stride < 1:
            raise ValueError("Sample stride must be at least 1")
        if not (1 <= self.palette.quantization_level <= 255):
            raise ValueError("Quantization level must be between 1 and 255")

        # Validate model dimensions
        if self.model.width_mm is None or self.model.width_mm <= 0:
            raise ValueError("Model width must be positive")
        if self.model.height_mm is not None and self.model.height_mm <= 0:
            raise ValueError("Model height must be positive")
        if self.model.layer_height_mm <= 0:
            raise ValueError("Layer height must be positive")
        if self.model.base_thickness_layers < 1:
            raise ValueError("Base thickness must be at least one layer")
        if self.model.band_thickness_layers < 1:
            raise ValueError("Band thickness must be at least one layer")

        if not self.output.filename.lower().endswith('.stl'):
            raise ValueError("Output filename must end in .stl")
