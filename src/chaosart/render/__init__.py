from chaosart.render.encoder import encode_video, write_png_frames
from chaosart.render.rasterizer import PointRasterizer, RenderConfig
