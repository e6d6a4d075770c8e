# cli - awsweep 명령줄 인터페이스 (click, rich)
