from abc import ABC, abstractmethod
from typing import BinaryIO, Dict


class StorageClientInterface(ABC):
    """
    一个抽象基类 (ABC)，定义了所有存储客户端必须实现的统一接口。
    这确保了上传、删除等服务可以与任何存储后端以相同的方式进行交互。
    """

    @abstractmethod
    def put_object(self, object_name: str, data: BinaryIO, length: int, content_type: str) -> Dict:
        """
        上传一个对象（文件）。
        :return: 包含 ETag 等信息的字典。
        """
        pass

    @abstractmethod
    def remove_object(self, object_name: str):
        """删除一个对象。对象不存在时视为成功。"""
        pass

    @abstractmethod
    def build_final_url(self, object_name: str) -> str:
        """构建最终的可公开访问 URL。"""
        pass
