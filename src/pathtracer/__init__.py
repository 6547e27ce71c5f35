"""Row-parallel sphere path tracer built on Taichi.

Subpackages:
    core: Rays, vector helpers, the path integrator and the row scheduler
    geometry: Sphere primitive and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere storage, closest-hit queries and scene builders
    camera: Thin-lens camera with depth of field
    output: Pixel sinks (PPM text, PNG) and 8-bit encoding
"""

__version__ = "0.1.0"
